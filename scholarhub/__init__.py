"""
Scholarhub API
Flask Application Factory.

Usage:
    from scholarhub import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from scholarhub.auth import init_auth
from scholarhub.config import config
from scholarhub.middleware.logging_config import configure_logging
from scholarhub.middleware.rate_limiter import init_rate_limits
from scholarhub.middleware.security_headers import init_security_headers
from scholarhub.middleware.timing import init_request_timing
from scholarhub.models import db
from scholarhub.utils.errors import init_error_handlers

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _ensure_sqlite_dir(uri):
    """Create the parent directory of a file-backed SQLite database."""
    if not uri.startswith("sqlite:///") or ":memory:" in uri:
        return
    db_dir = os.path.dirname(uri.replace("sqlite:///", "", 1))
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit - apply per-blueprint
    storage_uri=os.getenv("REDIS_URL", "memory://"),  # Redis in production, memory for dev
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    The application owns the database engine and its connection pool
    (``db.init_app``); nothing opens a connection before this runs.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    # Instantiate so ProductionConfig can refuse to start without its env vars
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Session lookup & CSRF middleware ─────────────────────────────────
    init_auth(app)

    # ── Security headers (CSP, HSTS, X-Frame-Options, etc.) ─────────────
    init_security_headers(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Error handlers ───────────────────────────────────────────────────
    init_error_handlers(app)

    # ── Request guards (input length) ────────────────────────────────────
    app.config.setdefault("MAX_CONTENT_LENGTH", 2 * 1024 * 1024)  # 2 MB

    @app.before_request
    def _guard_request():
        max_len = app.config.get("MAX_CONTENT_LENGTH")
        if max_len and request.content_length and request.content_length > max_len:
            abort(413, description="Request body too large")

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    with app.app_context():
        _ensure_sqlite_dir(app.config["SQLALCHEMY_DATABASE_URI"])
        db.create_all()
        app.logger.info("db.create_all() completed successfully")

    # ── Blueprints ───────────────────────────────────────────────────────
    from scholarhub.blueprints.announcements_bp import announcements_bp
    from scholarhub.blueprints.goals_bp import goals_bp
    from scholarhub.blueprints.health_bp import health_bp
    from scholarhub.blueprints.invitations_bp import invitations_bp
    from scholarhub.blueprints.requests_bp import requests_bp
    from scholarhub.blueprints.scholars_bp import scholars_bp
    from scholarhub.blueprints.tasks_bp import tasks_bp
    from scholarhub.blueprints.users_bp import users_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(scholars_bp)
    app.register_blueprint(requests_bp)
    app.register_blueprint(announcements_bp)
    app.register_blueprint(invitations_bp)
    app.register_blueprint(tasks_bp)
    app.register_blueprint(goals_bp)
    app.register_blueprint(users_bp)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
