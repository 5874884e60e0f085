"""
Identity models.

Models:
    - User:  identity record shared with the external auth provider.
    - Staff: staff profile, at most one per user.

``users.id`` is an opaque string owned by the auth provider; accounts created
through invitation acceptance get a generated UUID like every other table.
"""

from scholarhub.models import db
from scholarhub.models.base import BaseModel
from scholarhub.utils.helpers import isoformat

USER_TYPES = ("staff", "scholar")
STAFF_ROLES = ("admin", "viewer")


class User(BaseModel):
    __tablename__ = "users"

    name = db.Column(db.String(200), nullable=False, default="")
    email = db.Column(db.String(320), nullable=False, unique=True, index=True)
    email_verified = db.Column(db.Boolean, nullable=False, default=False)
    image = db.Column(db.Text, nullable=True)
    user_type = db.Column(
        db.Enum(*USER_TYPES, name="user_type"), nullable=False,
    )

    staff = db.relationship(
        "Staff", back_populates="user", uselist=False, cascade="all, delete-orphan",
    )
    scholar = db.relationship(
        "Scholar", back_populates="user", uselist=False, cascade="all, delete-orphan",
    )

    def to_dict(self):
        data = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "emailVerified": self.email_verified,
            "image": self.image,
            "userType": self.user_type,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
        if self.staff is not None:
            data.update({
                "role": self.staff.role,
                "phone": self.staff.phone,
                "department": self.staff.department,
                "isActive": self.staff.is_active,
            })
        return data

    def __repr__(self):
        return f"<User {self.id} {self.email} ({self.user_type})>"


class Staff(BaseModel):
    __tablename__ = "staff"

    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    role = db.Column(db.Enum(*STAFF_ROLES, name="staff_role"), nullable=False, default="viewer")
    phone = db.Column(db.String(50), nullable=True)
    department = db.Column(db.String(200), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    user = db.relationship("User", back_populates="staff")

    def __repr__(self):
        return f"<Staff {self.user_id} role={self.role} active={self.is_active}>"
