"""
User Service - the signed-in user's own account.
"""

import logging

from scholarhub.core.exceptions import NotFoundError
from scholarhub.models import db
from scholarhub.models.user import User

logger = logging.getLogger(__name__)

STAFF_FIELDS = ("phone", "department")


def _get(user_id) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(resource="User", resource_id=user_id)
    return user


def get_user(user_id) -> dict:
    return _get(user_id).to_dict()


def update_user(user_id, patch) -> dict:
    """Update the user's name and, for staff, the staff profile, in one commit."""
    user = _get(user_id)

    if "name" in patch:
        user.name = patch["name"]

    if user.staff is not None:
        for field in STAFF_FIELDS:
            if field in patch:
                setattr(user.staff, field, patch[field])

    db.session.commit()
    logger.info("User updated: id=%s fields=%s", user.id, sorted(patch))
    return user.to_dict()
