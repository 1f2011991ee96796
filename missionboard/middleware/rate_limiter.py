"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in missionboard/__init__.py with no default
limits; this module applies granular limits per route category.

Usage:
    from missionboard.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_BLUEPRINTS = ("missions", "recommendations", "departments")
READ_BLUEPRINTS = ("dashboard", "users")


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Auth endpoints:   AUTH_RATE_LIMIT (default 10/minute, brute-force guard)
        - Write blueprints: 60/minute
        - Read blueprints:  200/minute
        - Health check:     exempt

    Rate limiting is disabled in testing mode or with RATELIMIT_ENABLED=false.
    """

    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    auth_limit = app.config.get("AUTH_RATE_LIMIT", "10/minute")
    for endpoint in ("auth.login", "auth.register"):
        view = app.view_functions.get(endpoint)
        if view:
            app.view_functions[endpoint] = limiter.limit(auth_limit)(view)

    for bp_name in WRITE_BLUEPRINTS:
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit("60/minute")(bp)

    for bp_name in READ_BLUEPRINTS:
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit("200/minute")(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured: auth=%s, write=60/min, read=200/min", auth_limit)
