"""Tests for the scholar request service.

Coverage:
  1. Listing order: status rank first, then newest submission
  2. Filters, search and pagination totals
  3. Attachments and audit history grouped back to their own request
  4. Audit rows written by create_request / update_request_status
  5. Status statistics
  6. Review comment email (best-effort, never blocks the review)
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

import scholarhub.services.request_service as svc
from scholarhub.core.exceptions import NotFoundError
from scholarhub.models import db
from scholarhub.models.email_log import EmailLog
from scholarhub.models.request import Request, RequestAuditLog
from scholarhub.services.pagination import PageRequest


def _file(scholar, description="Need support", type_="extenuating_circumstances", **extra):
    data = {"type": type_, "description": description}
    data.update(extra)
    return svc.create_request(scholar.user_id, data)


def _set_submitted(request_id, when):
    req = db.session.get(Request, request_id)
    req.submitted_date = when
    db.session.commit()


def _ids(result):
    return [row["id"] for row in result["data"]]


class TestListingOrder:
    def test_pending_before_approved_regardless_of_date(self, make_scholar, staff_user):
        scholar = make_scholar()
        old_pending = _file(scholar, "old pending")
        new_approved = _file(scholar, "new approved")
        _set_submitted(old_pending["id"], datetime(2024, 1, 1, tzinfo=timezone.utc))
        _set_submitted(new_approved["id"], datetime(2024, 6, 1, tzinfo=timezone.utc))
        svc.update_request_status(new_approved["id"], "approved", None, staff_user.id)

        assert _ids(svc.list_requests()) == [old_pending["id"], new_approved["id"]]

    def test_full_status_rank(self, make_scholar, staff_user):
        scholar = make_scholar()
        by_status = {}
        for status in ("rejected", "approved", "commented", "reviewed", "pending"):
            created = _file(scholar, status)
            if status != "pending":
                svc.update_request_status(created["id"], status, None, staff_user.id)
            by_status[status] = created["id"]

        expected = [by_status[s] for s in ("pending", "reviewed", "commented",
                                           "approved", "rejected")]
        assert _ids(svc.list_requests()) == expected

    def test_newest_first_within_status(self, make_scholar):
        scholar = make_scholar()
        older = _file(scholar, "older")
        newer = _file(scholar, "newer")
        _set_submitted(older["id"], datetime(2024, 1, 1, tzinfo=timezone.utc))
        _set_submitted(newer["id"], datetime(2024, 3, 1, tzinfo=timezone.utc))

        assert _ids(svc.list_requests()) == [newer["id"], older["id"]]


class TestListingFilters:
    def test_filter_by_type_and_priority(self, make_scholar):
        scholar = make_scholar()
        match = _file(scholar, type_="summer_funding_request", priority="high")
        _file(scholar, type_="summer_funding_request", priority="low")
        _file(scholar, type_="extenuating_circumstances", priority="high")

        result = svc.list_requests(filters={"type": "summer_funding_request",
                                            "priority": "high"})
        assert _ids(result) == [match["id"]]

    def test_search_matches_scholar_name_or_description(self, make_scholar):
        amina = make_scholar(name="Amina Diallo")
        other = make_scholar(name="Someone Else")
        by_name = _file(amina, "laptop broke")
        by_text = _file(other, "Amina asked me to file this")
        _file(other, "unrelated")

        result = svc.list_requests(search="amina")
        assert set(_ids(result)) == {by_name["id"], by_text["id"]}
        assert result["pagination"]["totalItems"] == 2

    def test_rows_carry_scholar_identity(self, make_scholar):
        scholar = make_scholar(name="Kofi", email="kofi@example.org")
        _file(scholar)
        row = svc.list_requests()["data"][0]
        assert row["scholarName"] == "Kofi"
        assert row["scholarEmail"] == "kofi@example.org"

    def test_pagination_totals(self, make_scholar):
        scholar = make_scholar()
        for i in range(5):
            _file(scholar, f"r{i}")

        result = svc.list_requests(page=PageRequest(page=3, limit=2))
        assert len(result["data"]) == 1
        assert result["pagination"]["totalItems"] == 5
        assert result["pagination"]["totalPages"] == 3
        assert result["pagination"]["hasNext"] is False


class TestEnrichment:
    def test_attachments_grouped_by_request(self, make_scholar):
        scholar = make_scholar()
        with_files = _file(scholar, "with files", attachments=[
            {"name": "a.pdf", "size": 10, "url": "uploads/a.pdf", "mime_type": "application/pdf"},
            {"name": "b.pdf", "size": 20, "url": "uploads/b.pdf", "mime_type": "application/pdf"},
        ])
        without = _file(scholar, "no files")

        rows = {r["id"]: r for r in svc.list_requests()["data"]}
        assert sorted(a["name"] for a in rows[with_files["id"]]["attachments"]) == ["a.pdf", "b.pdf"]
        assert rows[without["id"]]["attachments"] == []

    def test_create_writes_audit_rows(self, make_scholar):
        scholar = make_scholar()
        created = _file(scholar, attachments=[
            {"name": "a.pdf", "size": 10, "url": "uploads/a.pdf", "mime_type": "application/pdf"},
        ])

        actions = sorted(log["action"] for log in created["auditLogs"])
        assert actions == ["attachment_added", "created"]
        created_row = next(l for l in created["auditLogs"] if l["action"] == "created")
        assert created_row["newStatus"] == "pending"
        assert created_row["performedBy"] == scholar.user_id
        added = next(l for l in created["auditLogs"] if l["action"] == "attachment_added")
        assert added["metadata"] == {"fileName": "a.pdf"}

    def test_form_data_round_trips(self, make_scholar):
        scholar = make_scholar()
        created = _file(scholar, form_data={"amount": 1200, "currency": "USD"})
        assert created["formData"] == {"amount": 1200, "currency": "USD"}

    def test_scholar_listing_is_own_requests_only(self, make_scholar):
        mine = make_scholar(name="Mine")
        theirs = make_scholar(name="Theirs")
        own = _file(mine)
        _file(theirs)

        assert [r["id"] for r in svc.list_requests_for_scholar(mine.user_id)] == [own["id"]]

    def test_get_missing_request(self):
        with pytest.raises(NotFoundError):
            svc.get_request("missing")


class TestReview:
    def test_status_change_records_real_previous_status(self, make_scholar, staff_user):
        scholar = make_scholar()
        created = _file(scholar)

        svc.update_request_status(created["id"], "reviewed", None, staff_user.id)
        result = svc.update_request_status(created["id"], "approved", "Looks good",
                                           staff_user.id)

        changes = [l for l in result["auditLogs"] if l["action"] == "status_changed"]
        assert len(changes) == 2
        latest = next(l for l in changes if l["newStatus"] == "approved")
        assert latest["previousStatus"] == "reviewed"
        assert latest["comment"] == "Looks good"
        assert latest["performedBy"] == staff_user.id

        assert result["status"] == "approved"
        assert result["reviewComment"] == "Looks good"
        assert result["reviewedBy"] == staff_user.id
        assert result["reviewDate"] is not None

    def test_review_missing_request(self, staff_user):
        with pytest.raises(NotFoundError):
            svc.update_request_status("missing", "approved", None, staff_user.id)

    def test_comment_sends_email(self, make_scholar, staff_user):
        scholar = make_scholar(email="notify@example.org")
        created = _file(scholar, type_="summer_funding_request")

        svc.update_request_status(created["id"], "commented", "Please add receipts",
                                  staff_user.id)

        log = db.session.query(EmailLog).one()
        assert log.recipient_email == "notify@example.org"
        assert log.category == "request"
        assert log.template_name == "request_update"
        assert log.subject == "Your summer funding request request has been commented"
        assert log.status == "sent"

    def test_no_comment_no_email(self, make_scholar, staff_user):
        scholar = make_scholar()
        created = _file(scholar)
        svc.update_request_status(created["id"], "approved", None, staff_user.id)
        assert db.session.query(EmailLog).count() == 0

    def test_email_failure_keeps_review(self, make_scholar, staff_user):
        scholar = make_scholar()
        created = _file(scholar)

        with patch("scholarhub.services.email_service.EmailService.send_from_template",
                   side_effect=RuntimeError("smtp down")):
            result = svc.update_request_status(created["id"], "rejected", "Not eligible",
                                               staff_user.id)

        assert result["status"] == "rejected"
        assert db.session.get(Request, created["id"]).status == "rejected"
        assert db.session.query(RequestAuditLog).filter_by(action="status_changed").count() == 1


class TestStats:
    def test_counts_every_status(self, make_scholar, staff_user):
        scholar = make_scholar()
        _file(scholar)
        _file(scholar)
        approved = _file(scholar)
        svc.update_request_status(approved["id"], "approved", None, staff_user.id)

        assert svc.get_request_stats() == {
            "total": 3,
            "pending": 2,
            "approved": 1,
            "rejected": 0,
            "reviewed": 0,
            "commented": 0,
        }
