"""
Session token service.

Sessions are owned by the external identity provider; this API only
verifies the bearer token it hands to the front-ends and can mint one for a
freshly accepted invitation.

Algorithm: HS256, signed with SESSION_SECRET_KEY (falls back to SECRET_KEY)
Lifetime:  SESSION_TOKEN_EXPIRES seconds (default 1 day)

Token payload:
{
    "sub": <user_id>,
    "email": <email>,
    "user_type": "staff" | "scholar",
    "iat": <issued_at>,
    "exp": <expires_at>
}
"""

from dataclasses import dataclass
from datetime import timedelta

import jwt
from flask import current_app

from scholarhub.utils.helpers import utcnow

DEFAULT_EXPIRES = 86400
ALGORITHM = "HS256"


@dataclass(frozen=True)
class SessionUser:
    """The identity carried by a verified session token."""

    id: str
    email: str
    user_type: str

    @property
    def is_staff(self) -> bool:
        return self.user_type == "staff"


def _get_secret():
    return current_app.config.get("SESSION_SECRET_KEY") or current_app.config["SECRET_KEY"]


def issue_session_token(user) -> str:
    now = utcnow()
    expires = current_app.config.get("SESSION_TOKEN_EXPIRES", DEFAULT_EXPIRES)
    payload = {
        "sub": user.id,
        "email": user.email,
        "user_type": user.user_type,
        "iat": now,
        "exp": now + timedelta(seconds=expires),
    }
    return jwt.encode(payload, _get_secret(), algorithm=ALGORITHM)


def decode_session_token(token: str) -> SessionUser:
    """
    Verify a session token and return its user.

    Raises jwt.exceptions on failure (ExpiredSignatureError, InvalidTokenError, etc.)
    """
    payload = jwt.decode(token, _get_secret(), algorithms=[ALGORITHM])
    try:
        return SessionUser(
            id=payload["sub"],
            email=payload["email"],
            user_type=payload["user_type"],
        )
    except KeyError as exc:
        raise jwt.InvalidTokenError(f"Session token missing claim {exc}") from exc
