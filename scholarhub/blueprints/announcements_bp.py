"""
Announcements blueprint.

Endpoints:
    GET  /api/announcements                 - all announcements, newest first
    POST /api/announcements                 - create and target an announcement (staff)
    GET  /api/announcements/mine            - announcements addressed to the caller
    GET  /api/announcements/scholars        - scholar list for the targeting UI (staff)
    GET  /api/announcements/filter-options  - values for the targeting UI (staff)
"""

from flask import Blueprint, g, jsonify

import scholarhub.services.announcement_service as announcements
from scholarhub.auth import require_auth, require_staff
from scholarhub.blueprints import json_body, required_str
from scholarhub.core.exceptions import ValidationError
from scholarhub.models.announcement import VALID_FILTER_TYPES

announcements_bp = Blueprint("announcements", __name__, url_prefix="/api/announcements")


def _filters(data):
    raw = data.get("filters") or []
    if not isinstance(raw, list):
        raise ValidationError("filters must be a list", details={"filters": "list expected"})
    result = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"filters[{i}] must be an object")
        filter_type = item.get("filterType")
        if filter_type not in VALID_FILTER_TYPES:
            raise ValidationError(
                f"filters[{i}].filterType must be one of: {', '.join(sorted(VALID_FILTER_TYPES))}",
                details={f"filters[{i}].filterType": filter_type},
            )
        result.append({
            "filter_type": filter_type,
            "filter_value": required_str(item, "filterValue", max_len=200),
        })
    return result


@announcements_bp.route("", methods=["GET"])
@require_auth
def list_announcements():
    return jsonify(announcements.list_announcements()), 200


@announcements_bp.route("", methods=["POST"])
@require_staff
def create_announcement():
    """Body: {title, content, filters?: [{filterType, filterValue}]}"""
    data = json_body()
    title = required_str(data, "title", max_len=255)
    content = required_str(data, "content", max_len=20000)
    result = announcements.create_announcement(
        title, content, _filters(data), created_by=g.current_user.id,
    )
    return jsonify(result), 201


@announcements_bp.route("/mine", methods=["GET"])
@require_auth
def my_announcements():
    return jsonify(announcements.list_announcements_for_scholar(g.current_user.id)), 200


@announcements_bp.route("/scholars", methods=["GET"])
@require_staff
def scholars_for_filtering():
    return jsonify(announcements.get_scholars_for_filtering()), 200


@announcements_bp.route("/filter-options", methods=["GET"])
@require_staff
def filter_options():
    return jsonify(announcements.get_filter_options()), 200
