"""
Outbound email audit log.

Every send attempt made through ``EmailService`` is recorded here, including
log-only sends in development and failed SMTP deliveries.
"""

from scholarhub.models import db
from scholarhub.models.base import BaseModel
from scholarhub.utils.helpers import isoformat

EMAIL_STATUSES = ("queued", "sent", "failed")


class EmailLog(BaseModel):
    __tablename__ = "email_logs"

    recipient_email = db.Column(db.String(320), nullable=False, index=True)
    subject = db.Column(db.String(500), nullable=False)
    template_name = db.Column(db.String(100), nullable=True, comment="Email template used")
    category = db.Column(db.String(30), nullable=False, default="system",
                         comment="Feature that triggered this email")
    status = db.Column(db.String(20), nullable=False, default="queued",
                       comment="queued, sent, failed")
    error_message = db.Column(db.Text, nullable=True)
    sent_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "recipientEmail": self.recipient_email,
            "subject": self.subject,
            "templateName": self.template_name,
            "category": self.category,
            "status": self.status,
            "errorMessage": self.error_message,
            "sentAt": isoformat(self.sent_at),
            "createdAt": isoformat(self.created_at),
        }
