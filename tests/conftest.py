"""
Shared pytest fixtures for the MissionBoard test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - store: the app's SqlRecordStore
    - make_department / make_profile / auth_headers: API test factories
    - world: an InMemoryRecordStore seeded with two departments, an admin,
      a chief per department, two users, one mission and one recommendation
"""

from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from missionboard import create_app
from missionboard.integrations.record_store import InMemoryRecordStore
from missionboard.models import db as _db
from missionboard.services.app_state import AuthContext, load_state
from missionboard.services.jwt_service import generate_access_token


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


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
        # events left over from the previous test refer to dropped rows
        app.extensions["record_store"].dispatch()
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()
        app.extensions["record_store"].dispatch()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def store(app):
    return app.extensions["record_store"]


# ── API factories ────────────────────────────────────────────────────────


@pytest.fixture()
def make_department(store):
    def _make(acronym="D1", name=None):
        return store.insert("departments", {"acronym": acronym, "name": name or f"Department {acronym}"})
    return _make


@pytest.fixture()
def make_profile(store):
    """Insert a profile without a password (login is tested separately)."""
    counter = {"n": 0}

    def _make(role="user", department=None, name=None):
        counter["n"] += 1
        n = counter["n"]
        return store.insert("profiles", {
            "email": f"{role}{n}@example.com",
            "name": name or f"{role.title()} {n}",
            "role": role,
            "department_id": department["id"] if department else None,
        })
    return _make


@pytest.fixture()
def auth_headers():
    def _headers(profile):
        return {"Authorization": f"Bearer {generate_access_token(profile)}"}
    return _headers


# ── In-memory world for service-level tests ──────────────────────────────


def _profile(pid, role, department_id, name):
    return {"id": pid, "email": f"{pid}@example.com", "name": name, "role": role, "department_id": department_id}


@pytest.fixture()
def world():
    """A small organization in an InMemoryRecordStore.

    D1: chief1, user_u (assignee of rec_r), user_u2
    D2: chief2
    admin: no department
    mission_m: department D1, created by admin
    rec_r: assigned to user_u, in_progress, deadline in ten days
    """
    today = date.today()
    d1 = {"id": "d1", "acronym": "D1", "name": "Operations"}
    d2 = {"id": "d2", "acronym": "D2", "name": "Finance"}
    admin = _profile("admin", "admin", None, "Ada Admin")
    chief1 = _profile("chief1", "chief", "d1", "Chris Chief")
    chief2 = _profile("chief2", "chief", "d2", "Carla Chief")
    user_u = _profile("user_u", "user", "d1", "Uma User")
    user_u2 = _profile("user_u2", "user", "d1", "Ulf User")
    mission_m = {
        "id": "mission_m", "title": "Quarterly goals", "description": "Goals for D1",
        "created_by": "admin", "created_by_name": "Ada Admin", "department_id": "d1",
        "deadline": (today + timedelta(days=30)).isoformat(), "status": "active",
        "completed_at": None, "created_at": "2026-01-01T00:00:00+00:00",
    }
    rec_r = {
        "id": "rec_r", "title": "Fix the process", "description": "Write it down",
        "user_id": "user_u", "created_by": "Ada Admin", "created_by_id": "admin",
        "department_id": "d1", "mission_id": "mission_m",
        "deadline": (today + timedelta(days=10)).isoformat(), "status": "in_progress",
        "completed_at": None, "confirmed_at": None, "confirmed_by": None,
        "created_at": "2026-01-02T00:00:00+00:00",
    }
    store = InMemoryRecordStore(seed={
        "departments": [d1, d2],
        "profiles": [admin, chief1, chief2, user_u, user_u2],
        "missions": [mission_m],
        "recommendations": [rec_r],
    })

    def state_for(profile):
        auth = AuthContext(session={"sub": profile["id"]}, profile=profile) if profile else AuthContext.anonymous()
        return load_state(store, auth)

    return SimpleNamespace(
        store=store, today=today, state_for=state_for,
        d1=d1, d2=d2, admin=admin, chief1=chief1, chief2=chief2,
        user_u=user_u, user_u2=user_u2, mission_m=mission_m, rec_r=rec_r,
    )
