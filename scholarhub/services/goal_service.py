"""
Goal service.

Goals belong to exactly one scholar and are only ever touched by that
scholar. A goal that exists but belongs to someone else is reported as
not found.
"""

from __future__ import annotations

import logging

from sqlalchemy import select

from scholarhub.core.exceptions import NotFoundError
from scholarhub.models import db
from scholarhub.models.goal import Goal
from scholarhub.services.scholar_service import get_scholar_for_user
from scholarhub.utils.helpers import utcnow

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "category", "target_date", "progress", "status")


def _owned_goal(user_id, goal_id):
    scholar = get_scholar_for_user(user_id)
    goal = db.session.get(Goal, goal_id)
    if goal is None or goal.scholar_id != scholar.id:
        raise NotFoundError(resource="Goal", resource_id=goal_id)
    return goal


def list_goals(user_id):
    scholar = get_scholar_for_user(user_id)
    goals = db.session.execute(
        select(Goal)
        .where(Goal.scholar_id == scholar.id)
        .order_by(Goal.target_date.asc(), Goal.created_at.asc())
    ).scalars().all()
    return [g.to_dict() for g in goals]


def get_goal(user_id, goal_id):
    return _owned_goal(user_id, goal_id).to_dict()


def create_goal(user_id, data):
    scholar = get_scholar_for_user(user_id)
    status = data.get("status") or "pending"
    goal = Goal(
        scholar_id=scholar.id,
        title=data["title"],
        description=data.get("description"),
        category=data["category"],
        target_date=data["target_date"],
        progress=data.get("progress", 0) or 0,
        status=status,
        completed_at=utcnow() if status == "completed" else None,
    )
    db.session.add(goal)
    scholar.last_activity = utcnow()
    db.session.commit()
    logger.info("Goal created: id=%s scholar=%s", goal.id, scholar.id)
    return goal.to_dict()


def update_goal(user_id, goal_id, patch):
    """Partial update of the caller's goal.

    Sets completed_at when the patch moves the goal to completed.
    """
    goal = _owned_goal(user_id, goal_id)
    for field in EDITABLE_FIELDS:
        if field in patch:
            setattr(goal, field, patch[field])
    if patch.get("status") == "completed":
        goal.completed_at = utcnow()
    db.session.commit()
    logger.info("Goal updated: id=%s fields=%s", goal.id, sorted(patch))
    return goal.to_dict()


def delete_goal(user_id, goal_id):
    goal = _owned_goal(user_id, goal_id)
    db.session.delete(goal)
    db.session.commit()
    logger.info("Goal deleted: id=%s", goal_id)
