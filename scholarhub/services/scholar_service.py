"""
Scholar listing and aggregation service.

Responsibilities:
    - Paginated, filtered, sorted scholar listing joined with the owning user
    - Goal and task counters per scholar, computed with grouped queries over
      the page's scholar IDs (one query per counter family)
    - Scholar profile (goals, tasks with responses, documents)
    - Filter options (database DISTINCT) and status statistics
    - Self-service profile update for the signed-in scholar
"""

from __future__ import annotations

import logging

from sqlalchemy import and_, case, distinct, func, select

from scholarhub.core.exceptions import NotFoundError
from scholarhub.models import db
from scholarhub.models.goal import Goal
from scholarhub.models.scholar import SCHOLAR_STATUSES, Document, Scholar
from scholarhub.models.task import Task
from scholarhub.models.user import User
from scholarhub.services.filters import Search, apply_filters, eq_filters
from scholarhub.services.pagination import PageRequest, count_rows, page_meta
from scholarhub.utils.helpers import utcnow

logger = logging.getLogger(__name__)

FILTER_COLUMNS = {
    "program": Scholar.program,
    "year": Scholar.year,
    "university": Scholar.university,
    "status": Scholar.status,
}
SEARCH_COLUMNS = (User.name, User.email, Scholar.program, Scholar.university)
SORT_COLUMNS = {
    "name": User.name,
    "lastActivity": Scholar.last_activity,
    "createdAt": Scholar.created_at,
}
DEFAULT_SORT = "createdAt"

# Fields a scholar may change on their own profile
PROFILE_FIELDS = ("phone", "program", "year", "university", "location", "bio")


def _base_query():
    return select(Scholar, User).join(User, Scholar.user_id == User.id)


def _empty_goal_counts():
    return {"total": 0, "completed": 0, "inProgress": 0, "pending": 0}


def _empty_task_counts():
    return {"total": 0, "completed": 0, "overdue": 0}


def goal_counts(scholar_ids):
    """{scholar_id: {total, completed, inProgress, pending}} for every ID given."""
    counts = {sid: _empty_goal_counts() for sid in scholar_ids}
    if not counts:
        return counts
    rows = db.session.execute(
        select(Goal.scholar_id, Goal.status, func.count(Goal.id))
        .where(Goal.scholar_id.in_(list(counts)))
        .group_by(Goal.scholar_id, Goal.status)
    ).all()
    key_for = {"completed": "completed", "in_progress": "inProgress", "pending": "pending"}
    for scholar_id, status, n in rows:
        bucket = counts[scholar_id]
        bucket["total"] += n
        if status in key_for:
            bucket[key_for[status]] += n
    return counts


def task_counts(scholar_ids, now=None):
    """{scholar_id: {total, completed, overdue}}; overdue is evaluated against ``now``."""
    counts = {sid: _empty_task_counts() for sid in scholar_ids}
    if not counts:
        return counts
    now = now or utcnow()
    completed = case((Task.status == "completed", 1), else_=0)
    overdue = case((and_(Task.status != "completed", Task.due_date < now), 1), else_=0)
    rows = db.session.execute(
        select(Task.scholar_id, func.count(Task.id), func.sum(completed), func.sum(overdue))
        .where(Task.scholar_id.in_(list(counts)))
        .group_by(Task.scholar_id)
    ).all()
    for scholar_id, total, n_completed, n_overdue in rows:
        counts[scholar_id] = {
            "total": total,
            "completed": int(n_completed or 0),
            "overdue": int(n_overdue or 0),
        }
    return counts


def _with_user(scholar, user):
    data = scholar.to_dict()
    data.update({"name": user.name, "email": user.email, "image": user.image})
    return data


def _listing_rows(rows):
    ids = [scholar.id for scholar, _ in rows]
    goals = goal_counts(ids)
    tasks = task_counts(ids)
    result = []
    for scholar, user in rows:
        data = _with_user(scholar, user)
        data["goals"] = goals[scholar.id]
        data["tasks"] = tasks[scholar.id]
        result.append(data)
    return result


# ═════════════════════════════════════════════════════════════════════════════
# Listing
# ═════════════════════════════════════════════════════════════════════════════


def list_scholars(filters=None, search=None, page=None, sort_by=None, sort_order="desc"):
    """Page of scholars with user fields and goal/task counters.

    Args:
        filters: equality filters keyed by program/year/university/status.
        search: case-insensitive substring over name, email, program, university.
        page: PageRequest (defaults to page 1, limit 20).
        sort_by: name | lastActivity | createdAt; anything else sorts by createdAt.
        sort_order: "asc" or "desc".

    Returns:
        {"data": [...], "pagination": {...}}
    """
    page = page or PageRequest()
    predicates = eq_filters(FILTER_COLUMNS, filters or {})
    if search:
        predicates.append(Search(SEARCH_COLUMNS, search))
    stmt = apply_filters(_base_query(), predicates)

    total = count_rows(stmt)

    column = SORT_COLUMNS.get(sort_by, SORT_COLUMNS[DEFAULT_SORT])
    direction = column.asc() if sort_order == "asc" else column.desc()
    rows = db.session.execute(
        stmt.order_by(direction, Scholar.id).offset(page.offset).limit(page.limit)
    ).all()

    return {"data": _listing_rows(rows), "pagination": page_meta(page, total)}


def get_scholar(scholar_id):
    """Single scholar in the listing shape. Counters are zero when nothing exists."""
    row = db.session.execute(_base_query().where(Scholar.id == scholar_id)).first()
    if row is None:
        raise NotFoundError(resource="Scholar", resource_id=scholar_id)
    return _listing_rows([row])[0]


def _profile(scholar, user):
    from scholarhub.services.task_service import list_tasks_for_scholar

    data = _with_user(scholar, user)
    goals = db.session.execute(
        select(Goal).where(Goal.scholar_id == scholar.id).order_by(Goal.target_date)
    ).scalars().all()
    documents = db.session.execute(
        select(Document)
        .where(Document.scholar_id == scholar.id)
        .order_by(Document.upload_date.desc())
    ).scalars().all()
    data["goals"] = [g.to_dict() for g in goals]
    data["tasks"] = list_tasks_for_scholar(scholar.id, with_responses=True)
    data["documents"] = [d.to_dict() for d in documents]
    return data


def get_scholar_profile(scholar_id):
    row = db.session.execute(_base_query().where(Scholar.id == scholar_id)).first()
    if row is None:
        raise NotFoundError(resource="Scholar", resource_id=scholar_id)
    return _profile(*row)


def get_scholar_profile_by_user(user_id):
    row = db.session.execute(_base_query().where(Scholar.user_id == user_id)).first()
    if row is None:
        raise NotFoundError(resource="Scholar", message="Scholar profile not found")
    return _profile(*row)


def get_scholar_for_user(user_id):
    """The Scholar row owned by ``user_id``, or NotFoundError."""
    scholar = db.session.execute(
        select(Scholar).where(Scholar.user_id == user_id)
    ).scalar_one_or_none()
    if scholar is None:
        raise NotFoundError(resource="Scholar", message="Scholar profile not found")
    return scholar


# ═════════════════════════════════════════════════════════════════════════════
# Filter options & stats
# ═════════════════════════════════════════════════════════════════════════════


def _distinct_values(column):
    return list(db.session.execute(
        select(distinct(column)).where(column.isnot(None)).order_by(column)
    ).scalars())


def get_scholar_filter_options():
    """Distinct program/year/university values, deduplicated by the database."""
    return {
        "programs": _distinct_values(Scholar.program),
        "years": _distinct_values(Scholar.year),
        "universities": _distinct_values(Scholar.university),
        "statuses": list(SCHOLAR_STATUSES),
    }


def get_scholar_stats():
    rows = db.session.execute(
        select(Scholar.status, func.count(Scholar.id)).group_by(Scholar.status)
    ).all()
    by_status = dict(rows)
    return {
        "total": sum(by_status.values()),
        "active": by_status.get("active", 0),
        "inactive": by_status.get("inactive", 0),
        "onHold": by_status.get("on_hold", 0),
    }


# ═════════════════════════════════════════════════════════════════════════════
# Self-service
# ═════════════════════════════════════════════════════════════════════════════


def update_scholar_profile(user_id, patch):
    """Apply the non-empty profile fields in ``patch`` to the caller's scholar row."""
    scholar = get_scholar_for_user(user_id)
    changed = []
    for field in PROFILE_FIELDS:
        value = patch.get(field)
        if value not in (None, ""):
            setattr(scholar, field, value)
            changed.append(field)
    scholar.last_activity = utcnow()
    db.session.commit()
    logger.info("Scholar profile updated: scholar=%s fields=%s", scholar.id, changed)
    return get_scholar(scholar.id)
