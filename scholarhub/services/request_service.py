"""
Scholar request service.

Responsibilities:
    - Paginated request listing for staff, ordered so actionable requests
      come first: status rank (pending, reviewed, commented, approved,
      rejected), then newest submission first within each status
    - Bulk enrichment with attachments and audit history
    - Filing a request (with optional attachment references)
    - Reviewing a request, with the status transition appended to the audit log
"""

from __future__ import annotations

import json
import logging

from sqlalchemy import case, func, select

from scholarhub.core.exceptions import NotFoundError
from scholarhub.models import db
from scholarhub.models.request import (
    REQUEST_STATUSES,
    Request,
    RequestAttachment,
    RequestAuditLog,
)
from scholarhub.models.scholar import Scholar
from scholarhub.models.user import User
from scholarhub.services.email_service import send_best_effort
from scholarhub.services.filters import Search, apply_filters, eq_filters
from scholarhub.services.pagination import PageRequest, count_rows, page_meta
from scholarhub.services.scholar_service import get_scholar_for_user
from scholarhub.utils.helpers import utcnow

logger = logging.getLogger(__name__)

FILTER_COLUMNS = {
    "type": Request.type,
    "status": Request.status,
    "priority": Request.priority,
}
SEARCH_COLUMNS = (Request.description, User.name, User.email)

STATUS_RANK = {"pending": 0, "reviewed": 1, "commented": 2, "approved": 3, "rejected": 4}
_status_rank = case(STATUS_RANK, value=Request.status, else_=5)


def _base_query():
    return (
        select(Request, User.name, User.email)
        .join(Scholar, Request.scholar_id == Scholar.id)
        .join(User, Scholar.user_id == User.id)
    )


def _attachments_and_logs(request_ids):
    """Two bulk queries for the whole page, grouped back by request ID."""
    attachments = {rid: [] for rid in request_ids}
    logs = {rid: [] for rid in request_ids}
    if not request_ids:
        return attachments, logs

    for att in db.session.execute(
        select(RequestAttachment)
        .where(RequestAttachment.request_id.in_(request_ids))
        .order_by(RequestAttachment.uploaded_at.desc())
    ).scalars():
        attachments[att.request_id].append(att.to_dict())

    for entry in db.session.execute(
        select(RequestAuditLog)
        .where(RequestAuditLog.request_id.in_(request_ids))
        .order_by(RequestAuditLog.created_at.desc())
    ).scalars():
        logs[entry.request_id].append(entry.to_dict())

    return attachments, logs


def _enrich(rows):
    ids = [req.id for req, _, _ in rows]
    attachments, logs = _attachments_and_logs(ids)
    result = []
    for req, scholar_name, scholar_email in rows:
        data = req.to_dict()
        data["scholarName"] = scholar_name
        data["scholarEmail"] = scholar_email
        data["attachments"] = attachments[req.id]
        data["auditLogs"] = logs[req.id]
        result.append(data)
    return result


def _audit(request_id, action, performed_by, previous_status=None, new_status=None,
           comment=None, metadata=None):
    db.session.add(RequestAuditLog(
        request_id=request_id,
        action=action,
        performed_by=performed_by,
        previous_status=previous_status,
        new_status=new_status,
        comment=comment,
        metadata_json=json.dumps(metadata) if metadata else None,
    ))


# ═════════════════════════════════════════════════════════════════════════════
# Listing
# ═════════════════════════════════════════════════════════════════════════════


def list_requests(filters=None, search=None, page=None):
    """Page of requests with scholar name/email, attachments and audit history.

    The order is fixed (status rank, then submitted_date desc); callers may
    pass a sort key at the HTTP boundary but it does not change the order.
    """
    page = page or PageRequest()
    predicates = eq_filters(FILTER_COLUMNS, filters or {})
    if search:
        predicates.append(Search(SEARCH_COLUMNS, search))
    stmt = apply_filters(_base_query(), predicates)

    total = count_rows(stmt)
    rows = db.session.execute(
        stmt.order_by(_status_rank, Request.submitted_date.desc(), Request.id)
        .offset(page.offset)
        .limit(page.limit)
    ).all()

    return {"data": _enrich(rows), "pagination": page_meta(page, total)}


def get_request_stats():
    rows = db.session.execute(
        select(Request.status, func.count(Request.id)).group_by(Request.status)
    ).all()
    by_status = dict(rows)
    stats = {"total": sum(by_status.values())}
    for status in REQUEST_STATUSES:
        stats[status] = by_status.get(status, 0)
    return stats


def list_requests_for_scholar(user_id):
    scholar = get_scholar_for_user(user_id)
    rows = db.session.execute(
        _base_query()
        .where(Request.scholar_id == scholar.id)
        .order_by(Request.submitted_date.desc(), Request.id)
    ).all()
    return _enrich(rows)


def get_request(request_id):
    row = db.session.execute(_base_query().where(Request.id == request_id)).first()
    if row is None:
        raise NotFoundError(resource="Request", resource_id=request_id)
    return _enrich([row])[0]


# ═════════════════════════════════════════════════════════════════════════════
# Commands
# ═════════════════════════════════════════════════════════════════════════════


def create_request(user_id, data):
    """File a request for the caller's scholar profile.

    ``data`` keys: type, description, priority?, form_data?, attachments?
    (each {name, size, url, mime_type}). Writes a ``created`` audit row and
    one ``attachment_added`` row per attachment.
    """
    scholar = get_scholar_for_user(user_id)
    now = utcnow()

    req = Request(
        scholar_id=scholar.id,
        type=data["type"],
        description=data["description"],
        priority=data.get("priority") or "medium",
        form_data=json.dumps(data["form_data"]) if data.get("form_data") is not None else None,
        status="pending",
        submitted_date=now,
    )
    db.session.add(req)
    db.session.flush()

    _audit(req.id, "created", user_id, new_status="pending")

    for att in data.get("attachments") or []:
        db.session.add(RequestAttachment(
            request_id=req.id,
            name=att["name"],
            size=att.get("size") or 0,
            url=att["url"],
            mime_type=att["mime_type"],
            uploaded_at=now,
        ))
        _audit(req.id, "attachment_added", user_id, metadata={"fileName": att["name"]})

    scholar.last_activity = now
    db.session.commit()
    logger.info("Request created: id=%s type=%s scholar=%s", req.id, req.type, scholar.id)
    return get_request(req.id)


def update_request_status(request_id, status, comment, reviewed_by):
    """Review a request.

    Appends a ``status_changed`` audit row with the status actually held
    before this call. A review comment, when given, is emailed to the
    scholar on a best-effort basis after the review is committed.
    """
    row = db.session.execute(_base_query().where(Request.id == request_id)).first()
    if row is None:
        raise NotFoundError(resource="Request", resource_id=request_id)
    req, scholar_name, scholar_email = row

    previous = req.status
    req.status = status
    req.review_comment = comment
    req.reviewed_by = reviewed_by
    req.review_date = utcnow()
    _audit(req.id, "status_changed", reviewed_by, previous_status=previous,
           new_status=status, comment=comment)
    db.session.commit()
    logger.info("Request status: id=%s %s -> %s by=%s", req.id, previous, status, reviewed_by)

    if comment:
        delivery = send_best_effort(
            to_email=scholar_email,
            template_name="request_update",
            context={
                "scholar_name": scholar_name,
                "request_type": req.type.replace("_", " "),
                "status": status,
                "comment": comment,
            },
            category="request",
        )
        if not delivery.ok:
            logger.warning("Request update email not sent: request=%s error=%s",
                           req.id, delivery.error)

    return get_request(req.id)
