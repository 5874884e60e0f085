"""
Shared pytest fixtures for the Scholarhub API test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_user / make_staff / make_scholar: row factories
    - staff_user: an active admin staff member
    - auth_headers: Authorization header for a given user
"""

import uuid

import pytest

from scholarhub import create_app
from scholarhub.models import db as _db
from scholarhub.models.scholar import Scholar
from scholarhub.models.user import Staff, User
from scholarhub.services.session_service import issue_session_token


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Factories ────────────────────────────────────────────────────────────


def _unique_email(prefix="user"):
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.org"


@pytest.fixture()
def make_user():
    def _make(name="Test User", email=None, user_type="scholar"):
        user = User(name=name, email=email or _unique_email(), user_type=user_type)
        _db.session.add(user)
        _db.session.commit()
        return user
    return _make


@pytest.fixture()
def make_staff(make_user):
    """Create a staff User with its Staff profile; returns the User."""
    def _make(name="Staff Member", email=None, role="admin", is_active=True, department=None):
        user = make_user(name=name, email=email or _unique_email("staff"), user_type="staff")
        _db.session.add(Staff(user_id=user.id, role=role, is_active=is_active,
                              department=department))
        _db.session.commit()
        return user
    return _make


@pytest.fixture()
def make_scholar(make_user):
    """Create a scholar User with its Scholar profile; returns the Scholar."""
    def _make(name="Scholar", email=None, program="Engineering", year="2024",
              university="University of Nairobi", location=None, status="active", **extra):
        user = make_user(name=name, email=email or _unique_email("scholar"), user_type="scholar")
        scholar = Scholar(
            user_id=user.id,
            program=program,
            year=year,
            university=university,
            location=location,
            status=status,
            **extra,
        )
        _db.session.add(scholar)
        _db.session.commit()
        return scholar
    return _make


@pytest.fixture()
def staff_user(make_staff):
    return make_staff()


@pytest.fixture()
def auth_headers():
    """auth_headers(user) → {"Authorization": "Bearer <session token>"}"""
    def _headers(user):
        return {"Authorization": f"Bearer {issue_session_token(user)}"}
    return _headers
