"""
Tasks blueprint.

Endpoints:
    GET   /api/tasks                 - all tasks, ?status= filter (staff)
    POST  /api/tasks                 - assign a task to a scholar (staff)
    GET   /api/tasks/my-tasks        - the caller's tasks with responses
    GET   /api/tasks/scholar/<id>    - a scholar's tasks (staff)
    PATCH /api/tasks/<id>            - edit a task (staff)
    PATCH /api/tasks/<id>/status     - set status (staff, or the owning scholar)
    POST  /api/tasks/<id>/complete   - complete with a response (owning scholar)
    GET   /api/tasks/<id>/response   - the submitted response (staff, or owner)
"""

from flask import Blueprint, g, jsonify

import scholarhub.services.task_service as tasks
from scholarhub.auth import active_staff, require_auth, require_staff
from scholarhub.blueprints import (
    choice,
    date_field,
    json_body,
    optional_str,
    query_choice,
    required_str,
)
from scholarhub.core.exceptions import ValidationError
from scholarhub.models.task import VALID_TASK_PRIORITIES, VALID_TASK_STATUSES, VALID_TASK_TYPES

tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")


def _attachments(data):
    raw = data.get("attachments") or []
    if not isinstance(raw, list):
        raise ValidationError("attachments must be a list", details={"attachments": "list expected"})
    result = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"attachments[{i}] must be an object")
        result.append({
            "file_name": required_str(item, "fileName", max_len=255),
            "file_url": required_str(item, "fileUrl"),
            "file_size": item.get("fileSize") or 0,
            "mime_type": required_str(item, "mimeType", max_len=100),
        })
    return result


def _check_access(task_id):
    """Staff see every task; anyone else only their own."""
    if active_staff(g.current_user) is None:
        tasks.get_owned_task(task_id, g.current_user.id)


@tasks_bp.route("", methods=["GET"])
@require_staff
def list_tasks():
    status = query_choice("status", VALID_TASK_STATUSES)
    return jsonify(tasks.list_tasks(status=status)), 200


@tasks_bp.route("", methods=["POST"])
@require_staff
def create_task():
    """Body: {scholarId, title, description?, type, priority?, dueDate}"""
    data = json_body()
    payload = {
        "scholar_id": required_str(data, "scholarId", max_len=36),
        "title": required_str(data, "title", max_len=255),
        "description": optional_str(data, "description", max_len=10000),
        "type": choice(data, "type", VALID_TASK_TYPES),
        "priority": choice(data, "priority", VALID_TASK_PRIORITIES, required=False,
                           default="medium"),
        "due_date": date_field(data, "dueDate"),
    }
    return jsonify(tasks.create_task(g.current_user.id, payload)), 201


@tasks_bp.route("/my-tasks", methods=["GET"])
@require_auth
def my_tasks():
    return jsonify(tasks.list_tasks_for_user(g.current_user.id)), 200


@tasks_bp.route("/scholar/<scholar_id>", methods=["GET"])
@require_staff
def scholar_tasks(scholar_id):
    return jsonify(tasks.list_tasks_for_scholar(scholar_id)), 200


@tasks_bp.route("/<task_id>", methods=["PATCH"])
@require_staff
def update_task(task_id):
    """Body: any of {title, description, type, priority, dueDate}"""
    data = json_body()
    patch = {}
    if "title" in data:
        patch["title"] = required_str(data, "title", max_len=255)
    if "description" in data:
        patch["description"] = optional_str(data, "description", max_len=10000)
    if "type" in data:
        patch["type"] = choice(data, "type", VALID_TASK_TYPES)
    if "priority" in data:
        patch["priority"] = choice(data, "priority", VALID_TASK_PRIORITIES)
    if "dueDate" in data:
        patch["due_date"] = date_field(data, "dueDate")
    return jsonify(tasks.update_task(task_id, patch)), 200


@tasks_bp.route("/<task_id>/status", methods=["PATCH"])
@require_auth
def update_status(task_id):
    """Body: {status: pending|in_progress|completed}"""
    data = json_body()
    status = choice(data, "status", VALID_TASK_STATUSES)
    _check_access(task_id)
    return jsonify(tasks.update_task_status(task_id, status)), 200


@tasks_bp.route("/<task_id>/complete", methods=["POST"])
@require_auth
def complete(task_id):
    """Body: {responseText?, attachments?: [{fileName, fileUrl, fileSize, mimeType}]}"""
    data = json_body()
    result = tasks.complete_task(
        task_id,
        g.current_user.id,
        response_text=optional_str(data, "responseText", max_len=20000),
        attachments=_attachments(data),
    )
    return jsonify(result), 200


@tasks_bp.route("/<task_id>/response", methods=["GET"])
@require_auth
def get_response(task_id):
    _check_access(task_id)
    return jsonify({"response": tasks.get_task_response(task_id)}), 200
