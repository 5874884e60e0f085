"""
Goal models.

Models:
    - Goal:      a scholar's personal objective with a 0-100 progress value.
    - Milestone: checklist item under a goal, removed with it.
"""

from scholarhub.models import db
from scholarhub.models.base import BaseModel
from scholarhub.utils.helpers import isoformat

GOAL_CATEGORIES = ("academic", "career", "leadership", "personal", "community")
GOAL_STATUSES = ("pending", "in_progress", "completed")
VALID_GOAL_CATEGORIES = frozenset(GOAL_CATEGORIES)
VALID_GOAL_STATUSES = frozenset(GOAL_STATUSES)


class Goal(BaseModel):
    __tablename__ = "goals"

    scholar_id = db.Column(
        db.String(36),
        db.ForeignKey("scholars.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.Enum(*GOAL_CATEGORIES, name="goal_category"), nullable=False)
    target_date = db.Column(db.DateTime(timezone=True), nullable=False)
    progress = db.Column(db.Integer, nullable=False, default=0, comment="Percent, 0-100")
    status = db.Column(
        db.Enum(*GOAL_STATUSES, name="goal_status"), nullable=False, default="pending",
    )
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    milestones = db.relationship(
        "Milestone",
        back_populates="goal",
        cascade="all, delete-orphan",
        order_by="Milestone.created_at",
    )

    def to_dict(self, include_milestones=True):
        data = {
            "id": self.id,
            "scholarId": self.scholar_id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "targetDate": isoformat(self.target_date),
            "progress": self.progress,
            "status": self.status,
            "completedAt": isoformat(self.completed_at),
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
        if include_milestones:
            data["milestones"] = [m.to_dict() for m in self.milestones]
        return data

    def __repr__(self):
        return f"<Goal {self.id} {self.title!r} {self.progress}% [{self.status}]>"


class Milestone(BaseModel):
    __tablename__ = "milestones"

    goal_id = db.Column(
        db.String(36),
        db.ForeignKey("goals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = db.Column(db.String(255), nullable=False)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    completed_date = db.Column(db.DateTime(timezone=True), nullable=True)

    goal = db.relationship("Goal", back_populates="milestones")

    def to_dict(self):
        return {
            "id": self.id,
            "goalId": self.goal_id,
            "title": self.title,
            "completed": self.completed,
            "completedDate": isoformat(self.completed_date),
        }
