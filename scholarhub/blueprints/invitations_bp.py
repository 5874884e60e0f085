"""
Invitations blueprint.

Endpoints:
    GET    /api/invitations/validate/<token>  - check a signup token (public)
    POST   /api/invitations/accept            - create the invited account (public)
    POST   /api/invitations                   - invite an email address (staff)
    POST   /api/invitations/resend            - resend a pending invitation (staff)
    GET    /api/invitations                   - list invitations, ?status= filter (staff)
    DELETE /api/invitations/<id>              - cancel a pending invitation (staff)
"""

from flask import Blueprint, g, jsonify

import scholarhub.services.invitation_service as invitations
from scholarhub.auth import require_staff
from scholarhub.blueprints import choice, json_body, optional_str, query_choice, required_str
from scholarhub.core.exceptions import ValidationError
from scholarhub.models.invitation import VALID_INVITATION_STATUSES
from scholarhub.models.user import USER_TYPES

# Column widths on the scholars table
SCHOLAR_FIELD_MAX_LEN = {
    "program": 200, "year": 50, "university": 200, "location": 200, "phone": 50, "bio": 5000,
}

invitations_bp = Blueprint("invitations", __name__, url_prefix="/api/invitations")


@invitations_bp.route("/validate/<token>", methods=["GET"])
def validate_token(token):
    return jsonify(invitations.validate_invitation_token(token)), 200


@invitations_bp.route("/accept", methods=["POST"])
def accept():
    """Body: {token, name} - returns {user, token} where token is a session token."""
    data = json_body()
    token = required_str(data, "token", max_len=64)
    name = required_str(data, "name", max_len=200)
    return jsonify(invitations.accept_invitation(token, name)), 201


@invitations_bp.route("", methods=["POST"])
@require_staff
def create_invitation():
    """Body: {email, userType: staff|scholar, scholarData?: {program?, year?, university?, ...}}"""
    data = json_body()
    email = required_str(data, "email", max_len=320)
    user_type = choice(data, "userType", frozenset(USER_TYPES))
    scholar_data = _scholar_defaults(data.get("scholarData"))
    result = invitations.create_invitation(
        email, user_type, invited_by=g.current_user.id, scholar_data=scholar_data,
    )
    return jsonify(result), 201


@invitations_bp.route("/resend", methods=["POST"])
@require_staff
def resend():
    """Body: {invitationId}"""
    data = json_body()
    invitation_id = required_str(data, "invitationId", max_len=36)
    return jsonify(invitations.resend_invitation(invitation_id)), 200


@invitations_bp.route("", methods=["GET"])
@require_staff
def list_invitations():
    status = query_choice("status", VALID_INVITATION_STATUSES)
    return jsonify(invitations.list_invitations(status=status)), 200


@invitations_bp.route("/<invitation_id>", methods=["DELETE"])
@require_staff
def cancel(invitation_id):
    return jsonify(invitations.cancel_invitation(invitation_id)), 200


def _scholar_defaults(raw):
    """Known profile fields from scholarData as strings; other keys are dropped."""
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValidationError("scholarData must be an object", details={"scholarData": "object expected"})
    defaults = {
        field: optional_str(raw, field, max_len=SCHOLAR_FIELD_MAX_LEN[field])
        for field in invitations.SCHOLAR_DEFAULT_FIELDS
    }
    return {k: v for k, v in defaults.items() if v is not None} or None
