"""
MissionBoard
Flask Application Factory.

Usage:
    from missionboard import create_app
    app = create_app()           # defaults to APP_ENV, or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

from missionboard.config import config
from missionboard.models import db
from missionboard.auth import init_auth
from missionboard.middleware.logging_config import configure_logging
from missionboard.middleware.rate_limiter import init_rate_limits
from missionboard.middleware.timing import init_request_timing
from missionboard.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import event as _sa_event, engine as _sa_engine


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit, applied per blueprint
)


def create_app(config_name=None, record_store=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.
        record_store: RecordStore to serve from.  Defaults to the
                      SqlRecordStore over the configured database.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
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

    # ── Record store (persistence collaborator) ──────────────────────────
    if record_store is None:
        from missionboard.integrations.sql_store import SqlRecordStore
        record_store = SqlRecordStore()
    app.extensions["record_store"] = record_store

    # ── Request timing, then authentication (g.auth) ─────────────────────
    init_request_timing(app)
    init_auth(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from missionboard.models import organization as _organization_models  # noqa: F401
    from missionboard.models import mission as _mission_models            # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    if not app.config.get("TESTING"):
        if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///"):
            os.makedirs(app.instance_path, exist_ok=True)
        with app.app_context():
            try:
                db.create_all()
                app.logger.info("db.create_all() completed successfully")
            except Exception as e:
                app.logger.warning("db.create_all() failed: %s", e)

    # ── Blueprints ───────────────────────────────────────────────────────
    from missionboard.blueprints import release_state
    from missionboard.blueprints.auth_bp import auth_bp
    from missionboard.blueprints.dashboard_bp import dashboard_bp
    from missionboard.blueprints.department_bp import department_bp
    from missionboard.blueprints.health_bp import health_bp
    from missionboard.blueprints.mission_bp import mission_bp
    from missionboard.blueprints.recommendation_bp import recommendation_bp
    from missionboard.blueprints.user_bp import user_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(department_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(mission_bp)
    app.register_blueprint(recommendation_bp)
    app.register_blueprint(dashboard_bp)

    app.teardown_request(release_state)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("create-profile")
    @click.option("--email", required=True)
    @click.option("--name", required=True)
    @click.option("--role", type=click.Choice(["admin", "chief", "user"]), default="user")
    @click.option("--department", "department", default=None, help="Department acronym (chief / user)")
    @click.password_option()
    def create_profile_cmd(email, name, role, department, password):
        """Create an account. Admin and chief accounts are only created here."""
        from missionboard.core.exceptions import ConflictError, ValidationError
        from missionboard.services.user_service import create_profile

        store = app.extensions["record_store"]
        department_id = None
        if department:
            matches = store.query("departments", acronym=department.upper())
            if not matches:
                raise click.ClickException(f"Unknown department: {department}")
            department_id = matches[0]["id"]
        try:
            profile = create_profile(
                store, email=email, password=password, name=name,
                role=role, department_id=department_id,
            )
        except (ValidationError, ConflictError) as e:
            raise click.ClickException(str(e))
        click.echo(f"Created {profile['role']} {profile['email']} ({profile['id']})")

    @app.cli.command("seed-demo")
    def seed_demo_cmd():
        """Seed demo departments, accounts, missions and recommendations."""
        from missionboard.services.seed_service import DEMO_PASSWORD, seed_demo

        counts = seed_demo(app.extensions["record_store"])
        logger.info("Seeded demo data: %s", counts)
        click.echo(f"Seeded {counts} (password for every demo account: {DEMO_PASSWORD})")

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        return api_error(E.NOT_FOUND, f"Not found: {request.path}")

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
