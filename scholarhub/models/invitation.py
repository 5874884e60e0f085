"""
Invitation model.

State machine::

    pending ──accept──▶ accepted
       │
       ├──expires──▶ expired     (applied lazily, on the next read)
       └──cancel───▶ cancelled

There are no transitions out of a terminal state. The token is the only
credential the signup page holds, so it is unique and single-use.
"""

import json

from scholarhub.models import db
from scholarhub.models.base import BaseModel
from scholarhub.models.user import USER_TYPES
from scholarhub.utils.helpers import as_utc, isoformat, utcnow

INVITATION_STATUSES = ("pending", "accepted", "expired", "cancelled")
VALID_INVITATION_STATUSES = frozenset(INVITATION_STATUSES)
TERMINAL_STATUSES = frozenset({"accepted", "expired", "cancelled"})
TOKEN_LENGTH = 32


class Invitation(BaseModel):
    __tablename__ = "invitations"

    email = db.Column(db.String(320), nullable=False, unique=True, index=True)
    user_type = db.Column(db.Enum(*USER_TYPES, name="invitation_user_type"), nullable=False)
    invited_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    status = db.Column(
        db.Enum(*INVITATION_STATUSES, name="invitation_status"),
        nullable=False,
        default="pending",
        index=True,
    )
    token = db.Column(db.String(TOKEN_LENGTH), nullable=False, unique=True, index=True)
    scholar_data = db.Column(db.Text, nullable=True, comment="JSON-encoded scholar defaults")
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    accepted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    sent_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_resent_at = db.Column(db.DateTime(timezone=True), nullable=True)
    resent_count = db.Column(db.Integer, nullable=False, default=0)

    inviter = db.relationship("User", foreign_keys=[invited_by])

    @property
    def is_expired(self):
        return as_utc(self.expires_at) < utcnow()

    @property
    def scholar_defaults(self):
        return json.loads(self.scholar_data) if self.scholar_data else None

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "userType": self.user_type,
            "invitedBy": self.invited_by,
            "invitedByName": self.inviter.name if self.inviter else None,
            "status": self.status,
            "scholarData": self.scholar_defaults,
            "expiresAt": isoformat(self.expires_at),
            "acceptedAt": isoformat(self.accepted_at),
            "userId": self.user_id,
            "sentAt": isoformat(self.sent_at),
            "lastResentAt": isoformat(self.last_resent_at),
            "resentCount": self.resent_count,
            "createdAt": isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<Invitation {self.id} {self.email} [{self.status}]>"
