"""
Requests blueprint.

Endpoints:
    GET  /api/requests               - paginated listing (staff)
    GET  /api/requests/stats         - counts by status (staff)
    GET  /api/requests/my-requests   - the caller's own requests
    POST /api/requests               - file a request (scholar)
    POST /api/requests/<id>/status   - review a request (staff)

The listing is always ordered by status rank, then newest submission;
sortBy/sortOrder are accepted and validated for client compatibility.
"""

from flask import Blueprint, g, jsonify, request

import scholarhub.services.request_service as requests_svc
from scholarhub.auth import require_auth, require_staff
from scholarhub.blueprints import (
    choice,
    json_body,
    optional_str,
    parse_pagination,
    parse_sort,
    query_choice,
    required_str,
)
from scholarhub.core.exceptions import ValidationError
from scholarhub.models.request import (
    VALID_REQUEST_PRIORITIES,
    VALID_REQUEST_STATUSES,
    VALID_REQUEST_TYPES,
    VALID_REVIEW_STATUSES,
)

requests_bp = Blueprint("requests", __name__, url_prefix="/api/requests")


def _attachments(data):
    raw = data.get("attachments") or []
    if not isinstance(raw, list):
        raise ValidationError("attachments must be a list", details={"attachments": "list expected"})
    result = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"attachments[{i}] must be an object")
        size = item.get("size", 0)
        if not isinstance(size, int) or size < 0:
            raise ValidationError(f"attachments[{i}].size must be a non-negative integer")
        result.append({
            "name": required_str(item, "name", max_len=255),
            "url": required_str(item, "url"),
            "mime_type": required_str(item, "mimeType", max_len=100),
            "size": size,
        })
    return result


@requests_bp.route("", methods=["GET"])
@require_staff
def list_requests():
    page = parse_pagination()
    parse_sort()
    filters = {
        "type": query_choice("type", VALID_REQUEST_TYPES),
        "status": query_choice("status", VALID_REQUEST_STATUSES),
        "priority": query_choice("priority", VALID_REQUEST_PRIORITIES),
    }
    search = (request.args.get("search") or "").strip() or None
    return jsonify(requests_svc.list_requests(filters=filters, search=search, page=page)), 200


@requests_bp.route("/stats", methods=["GET"])
@require_staff
def request_stats():
    return jsonify(requests_svc.get_request_stats()), 200


@requests_bp.route("/my-requests", methods=["GET"])
@require_auth
def my_requests():
    return jsonify(requests_svc.list_requests_for_scholar(g.current_user.id)), 200


@requests_bp.route("", methods=["POST"])
@require_auth
def create_request():
    """Body: {type, description, priority?, formData?, attachments?: [{name, url, mimeType, size}]}"""
    data = json_body()
    form_data = data.get("formData")
    if form_data is not None and not isinstance(form_data, dict):
        raise ValidationError("formData must be an object", details={"formData": "object expected"})
    payload = {
        "type": choice(data, "type", VALID_REQUEST_TYPES),
        "description": required_str(data, "description", max_len=10000),
        "priority": choice(data, "priority", VALID_REQUEST_PRIORITIES, required=False,
                           default="medium"),
        "form_data": form_data,
        "attachments": _attachments(data),
    }
    return jsonify(requests_svc.create_request(g.current_user.id, payload)), 201


@requests_bp.route("/<request_id>/status", methods=["POST"])
@require_staff
def update_status(request_id):
    """Body: {status: approved|rejected|reviewed|commented, comment?}"""
    data = json_body()
    status = choice(data, "status", VALID_REVIEW_STATUSES)
    comment = optional_str(data, "comment", max_len=5000)
    result = requests_svc.update_request_status(
        request_id, status, comment=comment, reviewed_by=g.current_user.id,
    )
    return jsonify(result), 200
