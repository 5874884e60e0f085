"""
Scholarhub API
Authentication & Authorization.

Provides:
    - Session lookup from ``Authorization: Bearer <token>`` into g.current_user
    - ``require_auth``: any signed-in user
    - ``require_staff``: signed-in staff user with an active Staff profile
    - JSON content-type guard for state-changing requests

Security model:
    - Invalid or expired tokens are treated as "no session"; the decorators
      decide whether that is acceptable for the endpoint
    - Staff access is re-checked against the database on every request so a
      deactivated staff member loses access immediately
"""

import functools
import logging

import jwt
from flask import g, request
from sqlalchemy import select

from scholarhub.core.exceptions import ForbiddenError, UnauthorizedError
from scholarhub.models import db
from scholarhub.models.user import Staff
from scholarhub.services.session_service import decode_session_token
from scholarhub.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def _session_from_request():
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header[7:].strip()
    try:
        return decode_session_token(token)
    except jwt.ExpiredSignatureError:
        logger.debug("Expired session token on %s", request.path)
    except jwt.InvalidTokenError:
        logger.info("Invalid session token on %s", request.path)
    return None


def active_staff(user):
    """The user's Staff row if they are staff and active, else None."""
    if user is None or not user.is_staff:
        return None
    staff = db.session.execute(
        select(Staff).where(Staff.user_id == user.id)
    ).scalar_one_or_none()
    if staff is None or not staff.is_active:
        return None
    return staff


# ── Decorators ───────────────────────────────────────────────────────────────

def require_auth(f):
    """Decorator: 401 unless the request carries a valid session."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if getattr(g, "current_user", None) is None:
            raise UnauthorizedError()
        return f(*args, **kwargs)

    return decorated


def require_staff(f):
    """
    Decorator: 401 without a session, 403 unless the user is active staff.

    Sets g.staff_role to the staff member's role.
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        user = getattr(g, "current_user", None)
        if user is None:
            raise UnauthorizedError()
        if not user.is_staff:
            logger.warning("Staff endpoint %s denied to %s user %s",
                           request.path, user.user_type, user.id)
            raise ForbiddenError()

        staff = active_staff(user)
        if staff is None:
            logger.warning("Staff endpoint %s denied: no active staff profile for %s",
                           request.path, user.id)
            raise ForbiddenError("Staff account is inactive or missing")

        g.staff_role = staff.role
        return f(*args, **kwargs)

    return decorated


# ── CSRF mitigation for the API ──────────────────────────────────────────────

def _check_content_type():
    """
    For state-changing requests with a body, require Content-Type:
    application/json. HTML forms cannot send that content type.
    """
    if request.method in ("POST", "PUT", "PATCH", "DELETE"):
        ct = request.content_type or ""
        if "application/json" not in ct and request.content_length and request.content_length > 0:
            return api_error(
                E.VALIDATION_INVALID,
                "Content-Type must be application/json for state-changing requests",
                status=415,
            )
    return None


def init_auth(app):
    """Install the session lookup and content-type guard for /api/ routes."""

    @app.before_request
    def _before_request_auth():
        g.current_user = None
        if not request.path.startswith("/api/"):
            return None

        ct_error = _check_content_type()
        if ct_error:
            return ct_error

        g.current_user = _session_from_request()
        return None
