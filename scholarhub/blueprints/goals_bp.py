"""
Goals blueprint - the signed-in scholar's own goals.

Endpoints:
    GET    /api/goals        - list goals
    POST   /api/goals        - create a goal
    GET    /api/goals/<id>   - one goal with milestones
    PATCH  /api/goals/<id>   - partial update
    DELETE /api/goals/<id>   - delete

Progress is an integer percentage, 0-100.
"""

from flask import Blueprint, g, jsonify

import scholarhub.services.goal_service as goals
from scholarhub.auth import require_auth
from scholarhub.blueprints import choice, date_field, json_body, optional_str, required_str
from scholarhub.core.exceptions import ValidationError
from scholarhub.models.goal import VALID_GOAL_CATEGORIES, VALID_GOAL_STATUSES

goals_bp = Blueprint("goals", __name__, url_prefix="/api/goals")


def _progress(data):
    value = data.get("progress")
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
        raise ValidationError("progress must be an integer between 0 and 100",
                              details={"progress": value})
    return value


@goals_bp.route("", methods=["GET"])
@require_auth
def list_goals():
    return jsonify(goals.list_goals(g.current_user.id)), 200


@goals_bp.route("", methods=["POST"])
@require_auth
def create_goal():
    """Body: {title, description?, category, targetDate, progress?, status?}"""
    data = json_body()
    payload = {
        "title": required_str(data, "title", max_len=255),
        "description": optional_str(data, "description", max_len=10000),
        "category": choice(data, "category", VALID_GOAL_CATEGORIES),
        "target_date": date_field(data, "targetDate"),
        "progress": _progress(data) if "progress" in data else 0,
        "status": choice(data, "status", VALID_GOAL_STATUSES, required=False, default="pending"),
    }
    return jsonify(goals.create_goal(g.current_user.id, payload)), 201


@goals_bp.route("/<goal_id>", methods=["GET"])
@require_auth
def get_goal(goal_id):
    return jsonify(goals.get_goal(g.current_user.id, goal_id)), 200


@goals_bp.route("/<goal_id>", methods=["PATCH"])
@require_auth
def update_goal(goal_id):
    """Body: any of {title, description, category, targetDate, progress, status}"""
    data = json_body()
    patch = {}
    if "title" in data:
        patch["title"] = required_str(data, "title", max_len=255)
    if "description" in data:
        patch["description"] = optional_str(data, "description", max_len=10000)
    if "category" in data:
        patch["category"] = choice(data, "category", VALID_GOAL_CATEGORIES)
    if "targetDate" in data:
        patch["target_date"] = date_field(data, "targetDate")
    if "progress" in data:
        patch["progress"] = _progress(data)
    if "status" in data:
        patch["status"] = choice(data, "status", VALID_GOAL_STATUSES)
    return jsonify(goals.update_goal(g.current_user.id, goal_id, patch)), 200


@goals_bp.route("/<goal_id>", methods=["DELETE"])
@require_auth
def delete_goal(goal_id):
    goals.delete_goal(g.current_user.id, goal_id)
    return "", 204
