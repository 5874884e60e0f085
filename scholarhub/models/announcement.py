"""
Announcement models.

Models:
    - Announcement:          title/content broadcast by a staff user.
    - AnnouncementFilter:    one (type, value) targeting criterion.
    - AnnouncementRecipient: snapshot row linking an announcement to a
                             scholar who matched its filters at creation.

Recipient rows are written once, when the announcement is created. Scholars
who later come to match the filters are not added.
"""

from scholarhub.models import db
from scholarhub.models.base import BaseModel
from scholarhub.utils.helpers import isoformat

FILTER_TYPES = ("program", "year", "university", "status", "location")
VALID_FILTER_TYPES = frozenset(FILTER_TYPES)


class Announcement(BaseModel):
    __tablename__ = "announcements"

    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)

    filters = db.relationship(
        "AnnouncementFilter", back_populates="announcement", cascade="all, delete-orphan",
    )
    recipients = db.relationship(
        "AnnouncementRecipient", back_populates="announcement", cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdBy": self.created_by,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Announcement {self.id} {self.title!r}>"


class AnnouncementFilter(BaseModel):
    __tablename__ = "announcement_filters"

    announcement_id = db.Column(
        db.String(36),
        db.ForeignKey("announcements.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    filter_type = db.Column(
        db.Enum(*FILTER_TYPES, name="announcement_filter_type"), nullable=False,
    )
    filter_value = db.Column(db.String(200), nullable=False)

    announcement = db.relationship("Announcement", back_populates="filters")

    def to_dict(self):
        return {"type": self.filter_type, "value": self.filter_value}


class AnnouncementRecipient(BaseModel):
    __tablename__ = "announcement_recipients"
    __table_args__ = (
        db.UniqueConstraint("announcement_id", "scholar_id", name="uq_announcement_recipient"),
    )

    announcement_id = db.Column(
        db.String(36),
        db.ForeignKey("announcements.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scholar_id = db.Column(
        db.String(36),
        db.ForeignKey("scholars.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    announcement = db.relationship("Announcement", back_populates="recipients")
