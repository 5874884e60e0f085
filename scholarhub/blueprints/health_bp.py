"""
Health check blueprint.

Endpoints:
    GET /api/health        - service summary
    GET /api/health/ready  - simple 200 for load balancers
    GET /api/health/live   - dependency status (database, rate-limit storage)
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from scholarhub.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/health")


@health_bp.route("", methods=["GET"])
def health():
    return jsonify({"status": "ok", "service": "scholarhub-api"}), 200


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe - always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Detailed liveness check with dependency status."""
    checks = {}
    overall = True

    # ── Database ─────────────────────────────────────────────────────
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks["database"] = {"status": "ok", "latency_ms": round(db_ms, 1)}
    except SQLAlchemyError as exc:
        db.session.rollback()
        checks["database"] = {"status": "error", "detail": str(exc)}
        overall = False
        logger.error("Health check - database failed: %s", exc)

    # ── Rate-limit storage ───────────────────────────────────────────
    storage = current_app.config.get("REDIS_URL", "memory://")
    checks["rate_limit_storage"] = {"status": "configured", "backend": storage.split("://", 1)[0]}

    checks["app"] = {
        "name": "Scholarhub API",
        "debug": current_app.debug,
        "testing": current_app.testing,
    }

    status_code = 200 if overall else 503
    return jsonify({"status": "ok" if overall else "degraded", "checks": checks}), status_code
