"""
Scholarhub API
SQLAlchemy handle and model registry.

``db`` is bound to an application in ``create_app`` via ``db.init_app``;
the engine and its connection pool belong to that application and are
disposed with it. Import every model module here so ``db.create_all()``
sees the full metadata.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from scholarhub.models.user import Staff, User  # noqa: E402,F401
from scholarhub.models.scholar import Document, Scholar  # noqa: E402,F401
from scholarhub.models.goal import Goal, Milestone  # noqa: E402,F401
from scholarhub.models.task import Task, TaskAttachment, TaskResponse  # noqa: E402,F401
from scholarhub.models.request import (  # noqa: E402,F401
    Request,
    RequestAttachment,
    RequestAuditLog,
)
from scholarhub.models.announcement import (  # noqa: E402,F401
    Announcement,
    AnnouncementFilter,
    AnnouncementRecipient,
)
from scholarhub.models.invitation import Invitation  # noqa: E402,F401
from scholarhub.models.email_log import EmailLog  # noqa: E402,F401
