"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in scholarhub/__init__.py with no default
limits; this module applies granular limits per route category.

Usage:
    from scholarhub.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

# Invitation endpoints send email and gate account creation
INVITATION_LIMIT = "20/minute"
WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Invitations:      20/minute  (email side effect, public accept/validate)
        - Write-heavy:      60/minute
        - Read-heavy:       200/minute
        - Health check:     exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    bp = app.blueprints.get("invitations")
    if bp:
        limiter.limit(INVITATION_LIMIT)(bp)

    for bp_name in ("requests", "tasks", "goals", "announcements", "users"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    bp = app.blueprints.get("scholars")
    if bp:
        limiter.limit(READ_LIMIT)(bp)

    # Health check - exempt from rate limiting
    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured - invitations: %s, write: %s, read: %s",
        INVITATION_LIMIT, WRITE_LIMIT, READ_LIMIT,
    )
