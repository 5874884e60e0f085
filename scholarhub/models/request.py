"""
Scholar request models.

Models:
    - Request:           a scholar's submission for staff review.
    - RequestAttachment: file reference attached to a request.
    - RequestAuditLog:   append-only history of a request.

Every status change writes a RequestAuditLog row carrying the status held
before the change and the status after it. Nothing updates or deletes audit
rows once written.
"""

import json

from scholarhub.models import db
from scholarhub.models.base import BaseModel
from scholarhub.utils.helpers import isoformat, utcnow

REQUEST_TYPES = (
    "extenuating_circumstances",
    "summer_funding_request",
    "summer_funding_report",
    "requirement_submission",
)
REQUEST_PRIORITIES = ("high", "medium", "low")
REQUEST_STATUSES = ("pending", "approved", "rejected", "reviewed", "commented")
AUDIT_ACTIONS = ("created", "status_changed", "comment_added", "attachment_added")

VALID_REQUEST_TYPES = frozenset(REQUEST_TYPES)
VALID_REQUEST_PRIORITIES = frozenset(REQUEST_PRIORITIES)
VALID_REQUEST_STATUSES = frozenset(REQUEST_STATUSES)
# Statuses a reviewer may set; "pending" is only ever the initial state
VALID_REVIEW_STATUSES = frozenset({"approved", "rejected", "reviewed", "commented"})


def _load_json(text):
    if not text:
        return None
    return json.loads(text)


class Request(BaseModel):
    __tablename__ = "requests"

    scholar_id = db.Column(
        db.String(36),
        db.ForeignKey("scholars.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = db.Column(db.Enum(*REQUEST_TYPES, name="request_type"), nullable=False)
    description = db.Column(db.Text, nullable=False)
    form_data = db.Column(db.Text, nullable=True, comment="JSON-encoded form payload")
    priority = db.Column(
        db.Enum(*REQUEST_PRIORITIES, name="request_priority"), nullable=False, default="medium",
    )
    status = db.Column(
        db.Enum(*REQUEST_STATUSES, name="request_status"),
        nullable=False,
        default="pending",
        index=True,
    )
    submitted_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    assigned_to = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    reviewed_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    review_comment = db.Column(db.Text, nullable=True)
    review_date = db.Column(db.DateTime(timezone=True), nullable=True)

    scholar = db.relationship("Scholar")

    def to_dict(self):
        return {
            "id": self.id,
            "scholarId": self.scholar_id,
            "type": self.type,
            "description": self.description,
            "formData": _load_json(self.form_data),
            "priority": self.priority,
            "status": self.status,
            "submittedDate": isoformat(self.submitted_date),
            "assignedTo": self.assigned_to,
            "reviewedBy": self.reviewed_by,
            "reviewComment": self.review_comment,
            "reviewDate": isoformat(self.review_date),
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Request {self.id} {self.type} [{self.status}]>"


class RequestAttachment(BaseModel):
    __tablename__ = "request_attachments"

    request_id = db.Column(
        db.String(36),
        db.ForeignKey("requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    size = db.Column(db.Integer, nullable=False, default=0)
    url = db.Column(db.Text, nullable=False)
    mime_type = db.Column(db.String(100), nullable=False)
    uploaded_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "requestId": self.request_id,
            "name": self.name,
            "size": self.size,
            "url": self.url,
            "mimeType": self.mime_type,
            "uploadedAt": isoformat(self.uploaded_at),
        }


class RequestAuditLog(BaseModel):
    __tablename__ = "request_audit_logs"

    request_id = db.Column(
        db.String(36),
        db.ForeignKey("requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action = db.Column(db.Enum(*AUDIT_ACTIONS, name="request_audit_action"), nullable=False)
    performed_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    previous_status = db.Column(db.String(20), nullable=True)
    new_status = db.Column(db.String(20), nullable=True)
    comment = db.Column(db.Text, nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_json = db.Column("metadata", db.Text, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "requestId": self.request_id,
            "action": self.action,
            "performedBy": self.performed_by,
            "previousStatus": self.previous_status,
            "newStatus": self.new_status,
            "comment": self.comment,
            "metadata": _load_json(self.metadata_json),
            "createdAt": isoformat(self.created_at),
        }
