"""
Scholars blueprint.

Endpoints:
    GET   /api/scholars                  - paginated listing with counters (staff)
    GET   /api/scholars/stats            - counts by status (staff)
    GET   /api/scholars/filter-options   - distinct program/year/university (staff)
    GET   /api/scholars/me               - the caller's own profile
    PATCH /api/scholars/me               - update the caller's own profile
    GET   /api/scholars/<id>             - single scholar with counters (staff)
    GET   /api/scholars/<id>/profile     - goals, tasks, documents (staff)

Listing query params: page, limit, search, program, year, university,
status, sortBy (name | lastActivity | createdAt), sortOrder (asc | desc).
"""

from flask import Blueprint, g, jsonify, request

import scholarhub.services.scholar_service as scholars
from scholarhub.auth import require_auth, require_staff
from scholarhub.blueprints import json_body, optional_str, parse_pagination, parse_sort, query_choice
from scholarhub.models.scholar import VALID_SCHOLAR_STATUSES

scholars_bp = Blueprint("scholars", __name__, url_prefix="/api/scholars")


@scholars_bp.route("", methods=["GET"])
@require_staff
def list_scholars():
    page = parse_pagination()
    sort_by, sort_order = parse_sort()
    filters = {
        "program": request.args.get("program"),
        "year": request.args.get("year"),
        "university": request.args.get("university"),
        "status": query_choice("status", VALID_SCHOLAR_STATUSES),
    }
    search = (request.args.get("search") or "").strip() or None
    result = scholars.list_scholars(
        filters=filters, search=search, page=page, sort_by=sort_by, sort_order=sort_order,
    )
    return jsonify(result), 200


@scholars_bp.route("/stats", methods=["GET"])
@require_staff
def scholar_stats():
    return jsonify(scholars.get_scholar_stats()), 200


@scholars_bp.route("/filter-options", methods=["GET"])
@require_staff
def filter_options():
    return jsonify(scholars.get_scholar_filter_options()), 200


@scholars_bp.route("/me", methods=["GET"])
@require_auth
def my_profile():
    return jsonify(scholars.get_scholar_profile_by_user(g.current_user.id)), 200


@scholars_bp.route("/me", methods=["PATCH"])
@require_auth
def update_my_profile():
    """Body: {phone?, program?, year?, university?, location?, bio?} - empty values are ignored."""
    data = json_body()
    patch = {
        field: optional_str(data, field, max_len=200 if field != "bio" else 5000)
        for field in scholars.PROFILE_FIELDS
    }
    return jsonify(scholars.update_scholar_profile(g.current_user.id, patch)), 200


@scholars_bp.route("/<scholar_id>", methods=["GET"])
@require_staff
def get_scholar(scholar_id):
    return jsonify(scholars.get_scholar(scholar_id)), 200


@scholars_bp.route("/<scholar_id>/profile", methods=["GET"])
@require_staff
def get_scholar_profile(scholar_id):
    return jsonify(scholars.get_scholar_profile(scholar_id)), 200
