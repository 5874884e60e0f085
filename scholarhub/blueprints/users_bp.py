"""
Users blueprint - the signed-in user's account.

Endpoints:
    GET   /api/users/me   - account, plus staff profile fields for staff
    PATCH /api/users/me   - {name?, phone?, department?}; phone/department apply to staff only
"""

from flask import Blueprint, g, jsonify

import scholarhub.services.user_service as users
from scholarhub.auth import require_auth
from scholarhub.blueprints import json_body, optional_str, required_str

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.route("/me", methods=["GET"])
@require_auth
def me():
    return jsonify(users.get_user(g.current_user.id)), 200


@users_bp.route("/me", methods=["PATCH"])
@require_auth
def update_me():
    data = json_body()
    patch = {}
    if "name" in data:
        patch["name"] = required_str(data, "name", max_len=200)
    for field in users.STAFF_FIELDS:
        if field in data:
            patch[field] = optional_str(data, field, max_len=200)
    return jsonify(users.update_user(g.current_user.id, patch)), 200
