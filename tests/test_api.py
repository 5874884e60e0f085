"""HTTP-level tests for the blueprints.

Coverage:
  1. Authentication (401) and staff authorization (403, inactive staff)
  2. Query validation: pagination bounds, sortOrder, enum filters
  3. JSON content-type guard (415) and error body shape
  4. Scholars, requests, announcements, invitations, tasks, goals, users
  5. Health endpoints and security headers
"""

from datetime import timedelta

import pytest

from scholarhub.models import db
from scholarhub.models.invitation import Invitation
from scholarhub.models.task import Task
from scholarhub.utils.helpers import utcnow


@pytest.fixture()
def staff_headers(staff_user, auth_headers):
    return auth_headers(staff_user)


@pytest.fixture()
def scholar(make_scholar):
    return make_scholar(name="Amina Diallo")


@pytest.fixture()
def scholar_headers(scholar, auth_headers):
    return auth_headers(scholar.user)


def _due(days=7):
    return (utcnow() + timedelta(days=days)).isoformat()


# ═════════════════════════════════════════════════════════════════════════════
# Auth
# ═════════════════════════════════════════════════════════════════════════════


class TestAuth:
    def test_no_session_is_401(self, client):
        res = client.get("/api/scholars")
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHORIZED"

    def test_garbage_token_is_401(self, client):
        res = client.get("/api/scholars", headers={"Authorization": "Bearer not-a-jwt"})
        assert res.status_code == 401

    def test_scholar_on_staff_endpoint_is_403(self, client, scholar_headers):
        res = client.get("/api/scholars", headers=scholar_headers)
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_FORBIDDEN"

    def test_inactive_staff_is_403(self, client, make_staff, auth_headers):
        inactive = make_staff(is_active=False)
        res = client.get("/api/scholars", headers=auth_headers(inactive))
        assert res.status_code == 403

    def test_staff_without_profile_is_403(self, client, make_user, auth_headers):
        orphan = make_user(user_type="staff")
        res = client.get("/api/requests/stats", headers=auth_headers(orphan))
        assert res.status_code == 403

    def test_form_post_is_415(self, client, staff_headers):
        res = client.post("/api/announcements", data="title=x&content=y",
                          headers={**staff_headers,
                                   "Content-Type": "application/x-www-form-urlencoded"})
        assert res.status_code == 415


# ═════════════════════════════════════════════════════════════════════════════
# Scholars
# ═════════════════════════════════════════════════════════════════════════════


class TestScholars:
    def test_listing(self, client, staff_headers, make_scholar):
        make_scholar(name="Kwame", program="Law")
        make_scholar(name="Zola", program="Medicine")

        res = client.get("/api/scholars?program=Law", headers=staff_headers)
        assert res.status_code == 200
        body = res.get_json()
        assert [s["name"] for s in body["data"]] == ["Kwame"]
        assert body["pagination"]["totalItems"] == 1
        assert body["data"][0]["goals"]["total"] == 0

    @pytest.mark.parametrize("query", ["page=0", "limit=0", "limit=101", "limit=abc",
                                       "page=-1", "page=99999999999999999999",
                                       "sortOrder=sideways", "status=retired"])
    def test_bad_query_is_400(self, client, staff_headers, query):
        res = client.get(f"/api/scholars?{query}", headers=staff_headers)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_limit_100_allowed(self, client, staff_headers):
        res = client.get("/api/scholars?limit=100", headers=staff_headers)
        assert res.status_code == 200
        assert res.get_json()["pagination"]["limit"] == 100

    def test_sort_and_search(self, client, staff_headers, make_scholar):
        make_scholar(name="Bea")
        make_scholar(name="Ada")
        make_scholar(name="Other Person")

        res = client.get("/api/scholars?search=a&sortBy=name&sortOrder=asc",
                         headers=staff_headers)
        names = [s["name"] for s in res.get_json()["data"]]
        assert names == ["Ada", "Bea", "Other Person"]

    def test_stats_and_filter_options(self, client, staff_headers, make_scholar):
        make_scholar(status="on_hold", program="Law")
        stats = client.get("/api/scholars/stats", headers=staff_headers).get_json()
        assert stats["onHold"] == 1
        options = client.get("/api/scholars/filter-options", headers=staff_headers).get_json()
        assert options["programs"] == ["Law"]

    def test_single_and_missing(self, client, staff_headers, scholar):
        assert client.get(f"/api/scholars/{scholar.id}", headers=staff_headers).status_code == 200
        res = client.get("/api/scholars/nope", headers=staff_headers)
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_profile(self, client, staff_headers, scholar):
        res = client.get(f"/api/scholars/{scholar.id}/profile", headers=staff_headers)
        body = res.get_json()
        assert body["goals"] == [] and body["tasks"] == [] and body["documents"] == []

    def test_me_get_and_patch(self, client, scholar_headers, scholar):
        res = client.get("/api/scholars/me", headers=scholar_headers)
        assert res.get_json()["id"] == scholar.id

        res = client.patch("/api/scholars/me", json={"location": "Kigali", "program": ""},
                           headers=scholar_headers)
        assert res.status_code == 200
        assert res.get_json()["location"] == "Kigali"
        assert res.get_json()["program"] == "Engineering"


# ═════════════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════════════


class TestRequests:
    def _file(self, client, headers, **overrides):
        body = {"type": "summer_funding_request", "description": "Internship travel"}
        body.update(overrides)
        return client.post("/api/requests", json=body, headers=headers)

    def test_create_and_list_own(self, client, scholar_headers):
        res = self._file(client, scholar_headers, formData={"amount": 300}, attachments=[
            {"name": "budget.pdf", "url": "uploads/budget.pdf",
             "mimeType": "application/pdf", "size": 2048},
        ])
        assert res.status_code == 201
        created = res.get_json()
        assert created["status"] == "pending"
        assert created["formData"] == {"amount": 300}
        assert created["attachments"][0]["mimeType"] == "application/pdf"

        mine = client.get("/api/requests/my-requests", headers=scholar_headers).get_json()
        assert [r["id"] for r in mine] == [created["id"]]

    def test_create_validation(self, client, scholar_headers):
        assert self._file(client, scholar_headers, type="holiday").status_code == 400
        assert self._file(client, scholar_headers, description="  ").status_code == 400
        assert self._file(client, scholar_headers, formData=[1, 2]).status_code == 400

    def test_staff_cannot_file(self, client, staff_headers):
        assert self._file(client, staff_headers).status_code == 404

    def test_review_flow(self, client, scholar_headers, staff_headers):
        created = self._file(client, scholar_headers).get_json()

        res = client.post(f"/api/requests/{created['id']}/status",
                          json={"status": "approved", "comment": "Enjoy"},
                          headers=staff_headers)
        assert res.status_code == 200
        assert res.get_json()["status"] == "approved"

        bad = client.post(f"/api/requests/{created['id']}/status", json={"status": "pending"},
                          headers=staff_headers)
        assert bad.status_code == 400

        stats = client.get("/api/requests/stats", headers=staff_headers).get_json()
        assert stats["approved"] == 1 and stats["total"] == 1

    def test_listing_accepts_sort_params(self, client, scholar_headers, staff_headers):
        self._file(client, scholar_headers)
        res = client.get("/api/requests?sortBy=priority&sortOrder=asc&status=pending",
                         headers=staff_headers)
        assert res.status_code == 200
        assert res.get_json()["pagination"]["totalItems"] == 1

    def test_listing_rejects_bad_filter(self, client, staff_headers):
        assert client.get("/api/requests?type=holiday", headers=staff_headers).status_code == 400


# ═════════════════════════════════════════════════════════════════════════════
# Announcements
# ═════════════════════════════════════════════════════════════════════════════


class TestAnnouncements:
    def test_create_with_filters(self, client, staff_headers, make_scholar):
        make_scholar(program="Medicine")
        make_scholar(program="Law")

        res = client.post("/api/announcements", json={
            "title": "Clinic day",
            "content": "Bring your white coat",
            "filters": [{"filterType": "program", "filterValue": "Medicine"}],
        }, headers=staff_headers)
        assert res.status_code == 201
        body = res.get_json()
        assert body["recipientCount"] == 1
        assert body["filters"] == [{"type": "program", "value": "Medicine"}]

    def test_unknown_filter_type_is_400(self, client, staff_headers):
        res = client.post("/api/announcements", json={
            "title": "x", "content": "y",
            "filters": [{"filterType": "shoeSize", "filterValue": "42"}],
        }, headers=staff_headers)
        assert res.status_code == 400

    def test_scholar_cannot_create(self, client, scholar_headers):
        res = client.post("/api/announcements", json={"title": "x", "content": "y"},
                          headers=scholar_headers)
        assert res.status_code == 403

    def test_scholar_sees_targeted(self, client, staff_headers, scholar_headers):
        client.post("/api/announcements", json={"title": "All", "content": "Hi"},
                    headers=staff_headers)
        mine = client.get("/api/announcements/mine", headers=scholar_headers).get_json()
        assert [a["title"] for a in mine] == ["All"]

    def test_targeting_helpers(self, client, staff_headers, scholar):
        scholars = client.get("/api/announcements/scholars", headers=staff_headers).get_json()
        assert scholars[0]["id"] == scholar.id
        options = client.get("/api/announcements/filter-options",
                             headers=staff_headers).get_json()
        assert options["statuses"] == ["active"]


# ═════════════════════════════════════════════════════════════════════════════
# Invitations
# ═════════════════════════════════════════════════════════════════════════════


class TestInvitations:
    def test_full_flow(self, client, staff_headers):
        res = client.post("/api/invitations", json={
            "email": "Newcomer@Example.org",
            "userType": "scholar",
            "scholarData": {"program": "Economics"},
        }, headers=staff_headers)
        assert res.status_code == 201
        invitation = res.get_json()
        assert invitation["email"] == "newcomer@example.org"
        assert "token" not in invitation

        token = db.session.get(Invitation, invitation["id"]).token

        res = client.get(f"/api/invitations/validate/{token}")
        assert res.status_code == 200
        assert res.get_json()["scholarData"] == {"program": "Economics"}

        res = client.post("/api/invitations/accept", json={"token": token, "name": "Newcomer"})
        assert res.status_code == 201
        session_token = res.get_json()["token"]

        me = client.get("/api/scholars/me",
                        headers={"Authorization": f"Bearer {session_token}"}).get_json()
        assert me["program"] == "Economics"
        assert me["name"] == "Newcomer"

    def test_duplicate_is_409(self, client, staff_headers):
        body = {"email": "dup@example.org", "userType": "staff"}
        assert client.post("/api/invitations", json=body, headers=staff_headers).status_code == 201
        res = client.post("/api/invitations", json=body, headers=staff_headers)
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_CONFLICT_DUPLICATE"

    @pytest.mark.parametrize("scholar_data", [
        {"program": {"nested": 1}},
        {"year": ["a"]},
        {"phone": "0" * 51},
        "Economics",
    ])
    def test_bad_scholar_data_is_400(self, client, staff_headers, scholar_data):
        res = client.post("/api/invitations", json={
            "email": "shape@example.org", "userType": "scholar", "scholarData": scholar_data,
        }, headers=staff_headers)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"
        assert db.session.query(Invitation).count() == 0

    def test_unknown_scholar_data_keys_dropped(self, client, staff_headers):
        res = client.post("/api/invitations", json={
            "email": "extra@example.org", "userType": "scholar",
            "scholarData": {"program": "Law", "status": "graduated", "userId": "x"},
        }, headers=staff_headers)
        assert res.status_code == 201
        assert res.get_json()["scholarData"] == {"program": "Law"}

    def test_bad_user_type(self, client, staff_headers):
        res = client.post("/api/invitations", json={"email": "a@example.org", "userType": "admin"},
                          headers=staff_headers)
        assert res.status_code == 400

    def test_resend_cancel_list(self, client, staff_headers):
        inv = client.post("/api/invitations", json={"email": "r@example.org", "userType": "staff"},
                          headers=staff_headers).get_json()

        res = client.post("/api/invitations/resend", json={"invitationId": inv["id"]},
                          headers=staff_headers)
        assert res.status_code == 200
        assert res.get_json()["resentCount"] == 1

        res = client.delete(f"/api/invitations/{inv['id']}", headers=staff_headers)
        assert res.get_json()["status"] == "cancelled"

        res = client.post("/api/invitations/resend", json={"invitationId": inv["id"]},
                          headers=staff_headers)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_BAD_REQUEST"

        listed = client.get("/api/invitations?status=cancelled", headers=staff_headers).get_json()
        assert [i["id"] for i in listed] == [inv["id"]]

    def test_unknown_token_is_404(self, client):
        assert client.get("/api/invitations/validate/nope").status_code == 404

    def test_listing_requires_staff(self, client):
        assert client.get("/api/invitations").status_code == 401


# ═════════════════════════════════════════════════════════════════════════════
# Tasks
# ═════════════════════════════════════════════════════════════════════════════


class TestTasks:
    def _assign(self, client, headers, scholar_id, **overrides):
        body = {"scholarId": scholar_id, "title": "Upload transcript",
                "type": "document_upload", "dueDate": _due()}
        body.update(overrides)
        return client.post("/api/tasks", json=body, headers=headers)

    def test_assign_and_complete(self, client, staff_headers, scholar_headers, scholar):
        res = self._assign(client, staff_headers, scholar.id)
        assert res.status_code == 201
        task_id = res.get_json()["id"]

        res = client.post(f"/api/tasks/{task_id}/complete", json={
            "responseText": "Uploaded",
            "attachments": [{"fileName": "t.pdf", "fileUrl": "uploads/t.pdf",
                             "fileSize": 10, "mimeType": "application/pdf"}],
        }, headers=scholar_headers)
        assert res.status_code == 200
        assert res.get_json()["status"] == "completed"

        res = client.get(f"/api/tasks/{task_id}/response", headers=staff_headers)
        assert res.get_json()["response"]["responseText"] == "Uploaded"

        mine = client.get("/api/tasks/my-tasks", headers=scholar_headers).get_json()
        assert mine[0]["response"]["attachments"][0]["fileName"] == "t.pdf"

    def test_assign_validation(self, client, staff_headers, scholar):
        assert self._assign(client, staff_headers, scholar.id, type="chore").status_code == 400
        assert self._assign(client, staff_headers, scholar.id,
                            dueDate="next tuesday").status_code == 400
        assert self._assign(client, staff_headers, "missing").status_code == 404

    def test_status_update_by_owner_and_stranger(self, client, staff_headers, scholar_headers,
                                                 scholar, make_scholar, auth_headers):
        task_id = self._assign(client, staff_headers, scholar.id).get_json()["id"]

        res = client.patch(f"/api/tasks/{task_id}/status", json={"status": "in_progress"},
                           headers=scholar_headers)
        assert res.status_code == 200

        stranger = make_scholar(name="Stranger")
        res = client.patch(f"/api/tasks/{task_id}/status", json={"status": "completed"},
                           headers=auth_headers(stranger.user))
        assert res.status_code == 404
        assert db.session.get(Task, task_id).status == "in_progress"

    def test_staff_listing_and_edit(self, client, staff_headers, scholar):
        task_id = self._assign(client, staff_headers, scholar.id).get_json()["id"]

        res = client.patch(f"/api/tasks/{task_id}", json={"priority": "high"},
                           headers=staff_headers)
        assert res.get_json()["priority"] == "high"

        listed = client.get("/api/tasks?status=pending", headers=staff_headers).get_json()
        assert [t["id"] for t in listed] == [task_id]
        by_scholar = client.get(f"/api/tasks/scholar/{scholar.id}",
                                headers=staff_headers).get_json()
        assert [t["id"] for t in by_scholar] == [task_id]


# ═════════════════════════════════════════════════════════════════════════════
# Goals
# ═════════════════════════════════════════════════════════════════════════════


class TestGoals:
    def _create(self, client, headers, **overrides):
        body = {"title": "Publish a paper", "category": "academic", "targetDate": _due(90)}
        body.update(overrides)
        return client.post("/api/goals", json=body, headers=headers)

    def test_crud(self, client, scholar_headers):
        res = self._create(client, scholar_headers, progress=10)
        assert res.status_code == 201
        goal_id = res.get_json()["id"]

        res = client.patch(f"/api/goals/{goal_id}", json={"progress": 100, "status": "completed"},
                           headers=scholar_headers)
        assert res.get_json()["completedAt"] is not None

        assert len(client.get("/api/goals", headers=scholar_headers).get_json()) == 1
        assert client.delete(f"/api/goals/{goal_id}", headers=scholar_headers).status_code == 204
        assert client.get(f"/api/goals/{goal_id}", headers=scholar_headers).status_code == 404

    @pytest.mark.parametrize("progress", [-1, 101, 50.5, "50", True])
    def test_progress_must_be_int_percentage(self, client, scholar_headers, progress):
        assert self._create(client, scholar_headers, progress=progress).status_code == 400

    def test_bad_category(self, client, scholar_headers):
        assert self._create(client, scholar_headers, category="hobby").status_code == 400


# ═════════════════════════════════════════════════════════════════════════════
# Users, health, headers
# ═════════════════════════════════════════════════════════════════════════════


class TestUsers:
    def test_staff_me(self, client, staff_headers, staff_user):
        body = client.get("/api/users/me", headers=staff_headers).get_json()
        assert body["id"] == staff_user.id
        assert body["role"] == "admin"
        assert body["isActive"] is True

    def test_patch_staff_fields(self, client, staff_headers):
        res = client.patch("/api/users/me", json={"name": "Renamed", "department": "Alumni"},
                           headers=staff_headers)
        body = res.get_json()
        assert body["name"] == "Renamed"
        assert body["department"] == "Alumni"

    def test_scholar_me_has_no_staff_fields(self, client, scholar_headers):
        body = client.get("/api/users/me", headers=scholar_headers).get_json()
        assert body["userType"] == "scholar"
        assert "role" not in body


class TestHealth:
    def test_endpoints(self, client):
        assert client.get("/api/health").status_code == 200
        assert client.get("/api/health/ready").status_code == 200
        res = client.get("/api/health/live")
        assert res.status_code == 200
        assert res.get_json()["checks"]["database"]["status"] == "ok"

    def test_security_headers(self, client):
        res = client.get("/api/health")
        assert res.headers["X-Content-Type-Options"] == "nosniff"
        assert res.headers["X-Frame-Options"] == "DENY"
        assert res.headers["Cache-Control"] == "no-store"
        assert "X-Request-Duration-Ms" in res.headers

    def test_unknown_route_is_json_404(self, client):
        res = client.get("/api/nothing-here")
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"
