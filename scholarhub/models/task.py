"""
Task models.

Models:
    - Task:           work item assigned to a scholar by a staff user.
    - TaskResponse:   the scholar's submission, at most one per task.
    - TaskAttachment: file reference attached to a response.

A task is *overdue* when its status is not ``completed`` and its due date
is in the past; the predicate is evaluated in SQL by the listing service.
"""

from scholarhub.models import db
from scholarhub.models.base import BaseModel
from scholarhub.utils.helpers import as_utc, isoformat, utcnow

TASK_TYPES = (
    "document_upload",
    "form_completion",
    "meeting_attendance",
    "goal_update",
    "feedback_submission",
    "other",
)
TASK_PRIORITIES = ("high", "medium", "low")
TASK_STATUSES = ("pending", "in_progress", "completed")
VALID_TASK_TYPES = frozenset(TASK_TYPES)
VALID_TASK_PRIORITIES = frozenset(TASK_PRIORITIES)
VALID_TASK_STATUSES = frozenset(TASK_STATUSES)


class Task(BaseModel):
    __tablename__ = "tasks"

    scholar_id = db.Column(
        db.String(36),
        db.ForeignKey("scholars.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assigned_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    type = db.Column(db.Enum(*TASK_TYPES, name="task_type"), nullable=False)
    priority = db.Column(
        db.Enum(*TASK_PRIORITIES, name="task_priority"), nullable=False, default="medium",
    )
    due_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    status = db.Column(
        db.Enum(*TASK_STATUSES, name="task_status"), nullable=False, default="pending",
    )
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    assigner = db.relationship("User", foreign_keys=[assigned_by])
    response = db.relationship(
        "TaskResponse", back_populates="task", uselist=False, cascade="all, delete-orphan",
    )

    @property
    def is_overdue(self):
        return self.status != "completed" and as_utc(self.due_date) < utcnow()

    def to_dict(self):
        return {
            "id": self.id,
            "scholarId": self.scholar_id,
            "assignedBy": self.assigned_by,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "priority": self.priority,
            "dueDate": isoformat(self.due_date),
            "status": self.status,
            "completedAt": isoformat(self.completed_at),
            "isOverdue": self.is_overdue,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Task {self.id} {self.title!r} [{self.status}]>"


class TaskResponse(BaseModel):
    __tablename__ = "task_responses"

    task_id = db.Column(
        db.String(36),
        db.ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    response_text = db.Column(db.Text, nullable=True)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    task = db.relationship("Task", back_populates="response")
    attachments = db.relationship(
        "TaskAttachment",
        back_populates="task_response",
        cascade="all, delete-orphan",
        order_by="TaskAttachment.created_at",
    )

    def to_dict(self, attachments=None):
        if attachments is None:
            attachments = self.attachments
        return {
            "id": self.id,
            "taskId": self.task_id,
            "responseText": self.response_text,
            "submittedAt": isoformat(self.submitted_at),
            "attachments": [a.to_dict() for a in attachments],
        }


class TaskAttachment(BaseModel):
    __tablename__ = "task_attachments"

    task_response_id = db.Column(
        db.String(36),
        db.ForeignKey("task_responses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name = db.Column(db.String(255), nullable=False)
    file_url = db.Column(db.Text, nullable=False)
    file_size = db.Column(db.Integer, nullable=False, default=0)
    mime_type = db.Column(db.String(100), nullable=False)

    task_response = db.relationship("TaskResponse", back_populates="attachments")

    def to_dict(self):
        return {
            "id": self.id,
            "fileName": self.file_name,
            "fileUrl": self.file_url,
            "fileSize": self.file_size,
            "mimeType": self.mime_type,
        }
