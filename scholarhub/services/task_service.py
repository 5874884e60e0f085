"""
Task service.

Staff assign tasks to scholars; scholars work them and submit a response.
Status updates overwrite unconditionally: any status may follow any other.
``completed_at`` is stamped whenever a task is set to completed and is left
in place if the task later moves back to pending or in_progress.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select

from scholarhub.core.exceptions import NotFoundError
from scholarhub.models import db
from scholarhub.models.scholar import Scholar
from scholarhub.models.task import Task, TaskAttachment, TaskResponse
from scholarhub.models.user import User
from scholarhub.services.scholar_service import get_scholar_for_user
from scholarhub.utils.helpers import utcnow

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "type", "priority", "due_date")


def _get_task(task_id):
    task = db.session.get(Task, task_id)
    if task is None:
        raise NotFoundError(resource="Task", resource_id=task_id)
    return task


def get_owned_task(task_id, user_id):
    """The task if it belongs to ``user_id``'s scholar profile; NotFoundError otherwise."""
    scholar = get_scholar_for_user(user_id)
    task = _get_task(task_id)
    if task.scholar_id != scholar.id:
        raise NotFoundError(resource="Task", resource_id=task_id)
    return task


def _responses_by_task(task_ids):
    """{task_id: response dict with attachments}, two queries for any number of tasks."""
    if not task_ids:
        return {}
    responses = db.session.execute(
        select(TaskResponse).where(TaskResponse.task_id.in_(task_ids))
    ).scalars().all()
    attachments = {}
    if responses:
        rows = db.session.execute(
            select(TaskAttachment)
            .where(TaskAttachment.task_response_id.in_([r.id for r in responses]))
            .order_by(TaskAttachment.created_at)
        ).scalars().all()
        for att in rows:
            attachments.setdefault(att.task_response_id, []).append(att)
    return {r.task_id: r.to_dict(attachments.get(r.id, [])) for r in responses}


def _task_dicts(stmt, with_responses=False):
    rows = db.session.execute(
        stmt.add_columns(User.name)
        .outerjoin(User, Task.assigned_by == User.id)
        .order_by(Task.due_date.asc(), Task.id)
    ).all()
    responses = _responses_by_task([t.id for t, _ in rows]) if with_responses else {}
    result = []
    for task, assigner_name in rows:
        data = task.to_dict()
        data["assignedByName"] = assigner_name
        if with_responses:
            data["response"] = responses.get(task.id)
        result.append(data)
    return result


# ═════════════════════════════════════════════════════════════════════════════
# Queries
# ═════════════════════════════════════════════════════════════════════════════


def list_tasks(status=None):
    """All tasks (staff view), soonest due first."""
    stmt = select(Task)
    if status:
        stmt = stmt.where(Task.status == status)
    return _task_dicts(stmt)


def list_tasks_for_scholar(scholar_id, with_responses=False):
    if db.session.get(Scholar, scholar_id) is None:
        raise NotFoundError(resource="Scholar", resource_id=scholar_id)
    return _task_dicts(select(Task).where(Task.scholar_id == scholar_id), with_responses)


def list_tasks_for_user(user_id):
    """Tasks of the signed-in scholar, with their submitted responses."""
    scholar = get_scholar_for_user(user_id)
    return _task_dicts(select(Task).where(Task.scholar_id == scholar.id), with_responses=True)


def get_task_response(task_id):
    _get_task(task_id)
    return _responses_by_task([task_id]).get(task_id)


# ═════════════════════════════════════════════════════════════════════════════
# Commands
# ═════════════════════════════════════════════════════════════════════════════


def create_task(assigned_by, data):
    """Assign a new task. ``data`` is validated and snake_cased by the caller."""
    if db.session.get(Scholar, data["scholar_id"]) is None:
        raise NotFoundError(resource="Scholar", resource_id=data["scholar_id"])

    task = Task(
        scholar_id=data["scholar_id"],
        assigned_by=assigned_by,
        title=data["title"],
        description=data.get("description"),
        type=data["type"],
        priority=data.get("priority") or "medium",
        due_date=data["due_date"],
        status="pending",
    )
    db.session.add(task)
    db.session.commit()
    logger.info("Task created: id=%s scholar=%s by=%s", task.id, task.scholar_id, assigned_by)
    return task.to_dict()


def update_task(task_id, patch):
    task = _get_task(task_id)
    for field in EDITABLE_FIELDS:
        if field in patch:
            setattr(task, field, patch[field])
    db.session.commit()
    return task.to_dict()


def update_task_status(task_id, status):
    """Overwrite the task's status; stamp completed_at when it becomes completed."""
    task = _get_task(task_id)
    previous = task.status
    task.status = status
    if status == "completed":
        task.completed_at = utcnow()
    db.session.commit()
    logger.info("Task status: id=%s %s -> %s", task.id, previous, status)
    return task.to_dict()


def complete_task(task_id, user_id, response_text=None, attachments=None):
    """Mark the caller's task completed and record their response.

    One transaction: status, completed_at, the response row (created or
    updated) and, when ``attachments`` is non-empty, a full replacement of
    the response's attachments.
    """
    task = get_owned_task(task_id, user_id)
    scholar = db.session.get(Scholar, task.scholar_id)

    now = utcnow()
    task.status = "completed"
    task.completed_at = now

    response = db.session.execute(
        select(TaskResponse).where(TaskResponse.task_id == task.id)
    ).scalar_one_or_none()
    if response is None:
        response = TaskResponse(task_id=task.id)
        db.session.add(response)
    response.response_text = response_text
    response.submitted_at = now
    db.session.flush()

    if attachments:
        db.session.execute(
            delete(TaskAttachment).where(TaskAttachment.task_response_id == response.id)
        )
        for att in attachments:
            db.session.add(TaskAttachment(
                task_response_id=response.id,
                file_name=att["file_name"],
                file_url=att["file_url"],
                file_size=att.get("file_size") or 0,
                mime_type=att["mime_type"],
            ))

    scholar.last_activity = now
    db.session.commit()
    logger.info("Task completed: id=%s scholar=%s attachments=%d",
                task.id, scholar.id, len(attachments or []))

    data = task.to_dict()
    data["response"] = _responses_by_task([task.id]).get(task.id)
    return data
