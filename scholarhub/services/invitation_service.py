"""
Invitation lifecycle service.

Accounts are created only through invitations. Lifecycle:

    create  → pending (token emailed, expires after INVITATION_TTL_DAYS)
    resend  → same token emailed again, at most INVITATION_MAX_RESENDS times
    cancel  → cancelled
    accept  → accepted, user and profile created
    expiry  → expired, applied lazily when a pending invitation past its
              expiry date is next touched

Email is best-effort: the invitation is committed before the email is
attempted, and a failed send is logged, never raised.

``invitations.email`` is unique, so re-inviting an address whose previous
invitation was expired, cancelled or orphaned replaces that row.
"""

from __future__ import annotations

import json
import logging
import secrets
import string
from datetime import timedelta

from email_validator import EmailNotValidError, validate_email
from flask import current_app
from sqlalchemy import select

from scholarhub.core.exceptions import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from scholarhub.models import db
from scholarhub.models.invitation import TOKEN_LENGTH, Invitation
from scholarhub.models.scholar import Scholar
from scholarhub.models.user import Staff, User
from scholarhub.services.email_service import send_best_effort
from scholarhub.services.session_service import issue_session_token
from scholarhub.utils.helpers import utcnow

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.ascii_letters + string.digits
DEFAULT_TTL_DAYS = 7
DEFAULT_MAX_RESENDS = 5
PLACEHOLDER = "TBD"
# scholar_data keys copied onto the new Scholar row
SCHOLAR_DEFAULT_FIELDS = ("program", "year", "university", "location", "phone", "bio")


def generate_token() -> str:
    """32 characters, each drawn uniformly from [A-Za-z0-9]."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))


def _unique_token() -> str:
    while True:
        token = generate_token()
        taken = db.session.execute(
            select(Invitation.id).where(Invitation.token == token)
        ).first()
        if taken is None:
            return token


def normalize_email(email: str) -> str:
    try:
        valid = validate_email((email or "").strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {e}", details={"email": str(e)})
    return valid.normalized.lower()


def _get(invitation_id) -> Invitation:
    invitation = db.session.get(Invitation, invitation_id)
    if invitation is None:
        raise NotFoundError(resource="Invitation", resource_id=invitation_id)
    return invitation


def _expire(invitation: Invitation):
    invitation.status = "expired"
    logger.info("Invitation expired: id=%s email=%s", invitation.id, invitation.email)


def _send_email(invitation: Invitation) -> bool:
    cfg = current_app.config
    base_url = cfg["STAFF_APP_URL"] if invitation.user_type == "staff" else cfg["SCHOLAR_APP_URL"]
    inviter = db.session.get(User, invitation.invited_by)
    delivery = send_best_effort(
        to_email=invitation.email,
        template_name="invitation",
        context={
            "role_label": "a staff member" if invitation.user_type == "staff" else "a scholar",
            "inviter_name": inviter.name if inviter and inviter.name else "Ashinaga",
            "invitation_url": f"{base_url.rstrip('/')}/signup?token={invitation.token}",
            "expires_on": invitation.expires_at.strftime("%d %B %Y"),
        },
        category="invitation",
    )
    if not delivery.ok:
        logger.warning("Invitation email not sent: id=%s error=%s", invitation.id, delivery.error)
    return delivery.ok


# ═════════════════════════════════════════════════════════════════════════════
# Staff operations
# ═════════════════════════════════════════════════════════════════════════════


def create_invitation(email, user_type, invited_by, scholar_data=None):
    """Invite ``email`` to join as ``user_type``.

    Raises:
        ConflictError: a user already has this email, or a pending,
            unexpired invitation exists for it (left untouched).
    """
    email = normalize_email(email)

    if db.session.execute(select(User.id).where(User.email == email)).first():
        raise ConflictError("User", "email", email, message="A user with this email already exists")

    existing = db.session.execute(
        select(Invitation).where(Invitation.email == email)
    ).scalar_one_or_none()
    if existing is not None:
        if existing.status == "pending":
            if not existing.is_expired:
                raise ConflictError(
                    "Invitation", "email", email,
                    message="A pending invitation already exists for this email",
                )
            _expire(existing)
        logger.info("Replacing %s invitation for %s (id=%s)", existing.status, email, existing.id)
        db.session.delete(existing)
        db.session.flush()

    ttl = current_app.config.get("INVITATION_TTL_DAYS", DEFAULT_TTL_DAYS)
    invitation = Invitation(
        email=email,
        user_type=user_type,
        invited_by=invited_by,
        status="pending",
        token=_unique_token(),
        scholar_data=json.dumps(scholar_data) if scholar_data else None,
        expires_at=utcnow() + timedelta(days=ttl),
        resent_count=0,
    )
    db.session.add(invitation)
    db.session.commit()
    logger.info("Invitation created: id=%s email=%s type=%s by=%s",
                invitation.id, email, user_type, invited_by)

    if _send_email(invitation):
        invitation.sent_at = utcnow()
        db.session.commit()

    return invitation.to_dict()


def resend_invitation(invitation_id):
    """Email the same token again.

    Raises:
        NotFoundError: unknown invitation.
        BadRequestError: not pending, expired, or resend limit reached.
    """
    invitation = _get(invitation_id)
    if invitation.status != "pending":
        raise BadRequestError(f"Can only resend pending invitations (status is {invitation.status})")
    if invitation.is_expired:
        _expire(invitation)
        db.session.commit()
        raise BadRequestError("Invitation has expired")

    max_resends = current_app.config.get("INVITATION_MAX_RESENDS", DEFAULT_MAX_RESENDS)
    if invitation.resent_count >= max_resends:
        raise BadRequestError("Maximum resend limit reached for this invitation")

    now = utcnow()
    invitation.resent_count += 1
    invitation.last_resent_at = now
    db.session.commit()
    logger.info("Invitation resent: id=%s count=%d", invitation.id, invitation.resent_count)

    if _send_email(invitation):
        invitation.sent_at = now
        db.session.commit()

    return invitation.to_dict()


def cancel_invitation(invitation_id):
    invitation = _get(invitation_id)
    if invitation.status != "pending":
        raise BadRequestError(f"Can only cancel pending invitations (status is {invitation.status})")
    invitation.status = "cancelled"
    db.session.commit()
    logger.info("Invitation cancelled: id=%s", invitation.id)
    return invitation.to_dict()


def list_invitations(status=None):
    stmt = select(Invitation).order_by(Invitation.created_at.desc(), Invitation.id)
    if status:
        stmt = stmt.where(Invitation.status == status)
    return [inv.to_dict() for inv in db.session.execute(stmt).scalars()]


# ═════════════════════════════════════════════════════════════════════════════
# Signup
# ═════════════════════════════════════════════════════════════════════════════


def _pending_by_token(token) -> Invitation:
    invitation = db.session.execute(
        select(Invitation).where(Invitation.token == token)
    ).scalar_one_or_none()
    if invitation is None:
        raise NotFoundError(resource="Invitation", message="Invalid invitation token")
    if invitation.status != "pending":
        raise BadRequestError(f"Invitation has already been {invitation.status}")
    if invitation.is_expired:
        _expire(invitation)
        db.session.commit()
        raise BadRequestError("Invitation has expired")
    return invitation


def validate_invitation_token(token):
    invitation = _pending_by_token(token)
    return {
        "email": invitation.email,
        "userType": invitation.user_type,
        "scholarData": invitation.scholar_defaults,
        "expiresAt": invitation.to_dict()["expiresAt"],
    }


def accept_invitation(token, name):
    """Create the invited account and consume the invitation, in one commit.

    Returns:
        {"user": {...}, "token": <session token>}
    """
    invitation = _pending_by_token(token)

    if db.session.execute(select(User.id).where(User.email == invitation.email)).first():
        raise ConflictError("User", "email", invitation.email,
                            message="A user with this email already exists")

    now = utcnow()
    user = User(
        name=name,
        email=invitation.email,
        email_verified=True,
        user_type=invitation.user_type,
    )
    db.session.add(user)
    db.session.flush()

    if invitation.user_type == "staff":
        db.session.add(Staff(user_id=user.id, role="viewer", is_active=True))
    else:
        defaults = invitation.scholar_defaults or {}
        fields = {"program": PLACEHOLDER, "year": PLACEHOLDER, "university": PLACEHOLDER}
        fields.update({k: defaults[k] for k in SCHOLAR_DEFAULT_FIELDS if defaults.get(k)})
        db.session.add(Scholar(
            user_id=user.id,
            status="active",
            start_date=now,
            last_activity=now,
            **fields,
        ))

    invitation.status = "accepted"
    invitation.accepted_at = now
    invitation.user_id = user.id
    db.session.commit()
    logger.info("Invitation accepted: id=%s user=%s type=%s",
                invitation.id, user.id, user.user_type)

    db.session.refresh(user)
    return {"user": user.to_dict(), "token": issue_session_token(user)}
