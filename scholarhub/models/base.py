"""
BaseModel - abstract base class for every table.

Adds:
  - ``id`` string UUID primary key
  - ``created_at`` / ``updated_at`` timezone-aware timestamps
"""

from scholarhub.models import db
from scholarhub.utils.helpers import new_id, utcnow


class BaseModel(db.Model):
    """Abstract base: UUID primary key plus audit timestamps."""
    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )
