"""
Announcement targeting service.

An announcement is addressed to the scholars matching *all* of its filters
at the moment it is created. Every filter entry is an independent equality
predicate, so two entries of the same type with different values match no
one. The matching scholars are stored as AnnouncementRecipient rows in the
same transaction as the announcement and are never recomputed.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select

from scholarhub.models import db
from scholarhub.models.announcement import (
    VALID_FILTER_TYPES,
    Announcement,
    AnnouncementFilter,
    AnnouncementRecipient,
)
from scholarhub.models.scholar import VALID_SCHOLAR_STATUSES, Scholar
from scholarhub.models.user import User
from scholarhub.services.filters import Eq, apply_filters

logger = logging.getLogger(__name__)

FILTER_COLUMNS = {
    "program": Scholar.program,
    "year": Scholar.year,
    "university": Scholar.university,
    "status": Scholar.status,
    "location": Scholar.location,
}


def _predicates(filters):
    predicates = []
    for f in filters:
        filter_type, value = f["filter_type"], f["filter_value"]
        if filter_type not in VALID_FILTER_TYPES:
            continue
        if filter_type == "status" and value not in VALID_SCHOLAR_STATUSES:
            continue
        predicates.append(Eq(FILTER_COLUMNS[filter_type], value))
    return predicates


def compute_recipients(filters):
    """IDs of the scholars matching every filter; all scholars when there are none."""
    stmt = apply_filters(select(Scholar.id), _predicates(filters or []))
    return list(db.session.execute(stmt.order_by(Scholar.id)).scalars())


def create_announcement(title, content, filters, created_by):
    """Persist the announcement, its filters and its recipient snapshot in one commit."""
    filters = filters or []
    announcement = Announcement(title=title, content=content, created_by=created_by)
    db.session.add(announcement)
    db.session.flush()

    for f in filters:
        db.session.add(AnnouncementFilter(
            announcement_id=announcement.id,
            filter_type=f["filter_type"],
            filter_value=f["filter_value"],
        ))

    recipient_ids = compute_recipients(filters)
    for scholar_id in recipient_ids:
        db.session.add(AnnouncementRecipient(
            announcement_id=announcement.id, scholar_id=scholar_id,
        ))

    db.session.commit()
    logger.info("Announcement created: id=%s filters=%d recipients=%d",
                announcement.id, len(filters), len(recipient_ids))

    data = announcement.to_dict()
    data["filters"] = [{"type": f["filter_type"], "value": f["filter_value"]} for f in filters]
    data["recipientCount"] = len(recipient_ids)
    return data


def _serialize(rows):
    ids = [a.id for a, _ in rows]
    filters = {aid: [] for aid in ids}
    counts = {}
    if ids:
        for f in db.session.execute(
            select(AnnouncementFilter)
            .where(AnnouncementFilter.announcement_id.in_(ids))
            .order_by(AnnouncementFilter.created_at)
        ).scalars():
            filters[f.announcement_id].append(f.to_dict())
        counts = dict(db.session.execute(
            select(AnnouncementRecipient.announcement_id, func.count(AnnouncementRecipient.id))
            .where(AnnouncementRecipient.announcement_id.in_(ids))
            .group_by(AnnouncementRecipient.announcement_id)
        ).all())

    result = []
    for announcement, creator_name in rows:
        data = announcement.to_dict()
        data["createdByName"] = creator_name
        data["filters"] = filters[announcement.id]
        data["recipientCount"] = counts.get(announcement.id, 0)
        result.append(data)
    return result


def _listing_query():
    return (
        select(Announcement, User.name)
        .outerjoin(User, Announcement.created_by == User.id)
        .order_by(Announcement.created_at.desc(), Announcement.id)
    )


def list_announcements():
    return _serialize(db.session.execute(_listing_query()).all())


def list_announcements_for_scholar(user_id):
    """Announcements whose recipient snapshot includes the caller's scholar."""
    scholar_id = db.session.execute(
        select(Scholar.id).where(Scholar.user_id == user_id)
    ).scalar_one_or_none()
    if scholar_id is None:
        return []
    stmt = _listing_query().join(
        AnnouncementRecipient, AnnouncementRecipient.announcement_id == Announcement.id,
    ).where(AnnouncementRecipient.scholar_id == scholar_id)
    return _serialize(db.session.execute(stmt).all())


def get_scholars_for_filtering():
    rows = db.session.execute(
        select(Scholar, User.name, User.email)
        .join(User, Scholar.user_id == User.id)
        .order_by(User.name, Scholar.id)
    ).all()
    return [
        {
            "id": scholar.id,
            "userId": scholar.user_id,
            "name": name,
            "email": email,
            "program": scholar.program,
            "year": scholar.year,
            "university": scholar.university,
            "location": scholar.location,
            "status": scholar.status,
        }
        for scholar, name, email in rows
    ]


def get_filter_options():
    """Distinct values per filter type, deduplicated in memory from the scholar list."""
    scholars = get_scholars_for_filtering()

    def values(key):
        return sorted({s[key] for s in scholars if s[key] is not None})

    return {
        "programs": values("program"),
        "years": values("year"),
        "universities": values("university"),
        "locations": values("location"),
        "statuses": values("status"),
    }
