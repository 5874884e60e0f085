"""
Scholar models.

Models:
    - Scholar:  scholarship recipient profile, exactly one owning User.
    - Document: reference to a file held in object storage (no bytes here).
"""

from scholarhub.models import db
from scholarhub.models.base import BaseModel
from scholarhub.utils.helpers import isoformat, utcnow

SCHOLAR_STATUSES = ("active", "inactive", "on_hold")
VALID_SCHOLAR_STATUSES = frozenset(SCHOLAR_STATUSES)


class Scholar(BaseModel):
    __tablename__ = "scholars"

    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    phone = db.Column(db.String(50), nullable=True)
    program = db.Column(db.String(200), nullable=False, index=True)
    year = db.Column(db.String(50), nullable=False, index=True)
    university = db.Column(db.String(200), nullable=False, index=True)
    location = db.Column(db.String(200), nullable=True)
    start_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    status = db.Column(
        db.Enum(*SCHOLAR_STATUSES, name="scholar_status"),
        nullable=False,
        default="active",
        index=True,
    )
    last_activity = db.Column(db.DateTime(timezone=True), nullable=True)
    bio = db.Column(db.Text, nullable=True)

    user = db.relationship("User", back_populates="scholar")

    def to_dict(self):
        """Scholar columns only; services merge in user fields and counters."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "phone": self.phone,
            "program": self.program,
            "year": self.year,
            "university": self.university,
            "location": self.location,
            "startDate": isoformat(self.start_date),
            "status": self.status,
            "lastActivity": isoformat(self.last_activity),
            "bio": self.bio,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Scholar {self.id} {self.program}/{self.year} [{self.status}]>"


class Document(BaseModel):
    __tablename__ = "documents"

    scholar_id = db.Column(
        db.String(36),
        db.ForeignKey("scholars.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(50), nullable=False)
    mime_type = db.Column(db.String(100), nullable=False)
    size = db.Column(db.Integer, nullable=False, default=0)
    url = db.Column(db.Text, nullable=False, comment="Object-storage key")
    uploaded_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    upload_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "scholarId": self.scholar_id,
            "name": self.name,
            "type": self.type,
            "mimeType": self.mime_type,
            "size": self.size,
            "url": self.url,
            "uploadedBy": self.uploaded_by,
            "uploadDate": isoformat(self.upload_date),
        }
