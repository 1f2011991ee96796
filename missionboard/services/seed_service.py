"""
Demo data for local development (``flask seed-demo``).

Creates two departments, one admin, a chief and two users per department,
one mission per department and a few recommendations in every status.
Does nothing when departments already exist.
"""

import logging
from datetime import date, datetime, timedelta, timezone

from missionboard.models.mission import REC_CONFIRMED, REC_IN_PROGRESS, REC_PENDING
from missionboard.models.organization import ROLE_ADMIN, ROLE_CHIEF, ROLE_USER
from missionboard.services.user_service import create_profile

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "demo-password"

DEMO_DEPARTMENTS = [
    {"acronym": "OPS", "name": "Operations"},
    {"acronym": "FIN", "name": "Finance"},
]


def seed_demo(store, *, today: date | None = None) -> dict:
    """Seed demo records through the record store.  Returns counts."""
    if store.query("departments"):
        logger.info("Demo seed skipped: departments already exist")
        return {"departments": 0, "profiles": 0, "missions": 0, "recommendations": 0}

    today = today or date.today()
    counts = {"departments": 0, "profiles": 0, "missions": 0, "recommendations": 0}

    admin = create_profile(
        store, email="admin@example.com", password=DEMO_PASSWORD,
        name="Demo Admin", role=ROLE_ADMIN,
    )
    counts["profiles"] += 1

    for entry in DEMO_DEPARTMENTS:
        dept = store.insert("departments", dict(entry))
        counts["departments"] += 1
        slug = entry["acronym"].lower()

        chief = create_profile(
            store, email=f"chief.{slug}@example.com", password=DEMO_PASSWORD,
            name=f"{entry['name']} Chief", role=ROLE_CHIEF, department_id=dept["id"],
        )
        users = [
            create_profile(
                store, email=f"user{i}.{slug}@example.com", password=DEMO_PASSWORD,
                name=f"{entry['name']} User {i}", role=ROLE_USER, department_id=dept["id"],
            )
            for i in (1, 2)
        ]
        counts["profiles"] += 3

        mission = store.insert("missions", {
            "title": f"{entry['name']} quarterly goals",
            "description": f"Improvement actions for {entry['name']}",
            "created_by": admin["id"],
            "created_by_name": admin["name"],
            "department_id": dept["id"],
            "deadline": (today + timedelta(days=30)).isoformat(),
            "status": "active",
            "completed_at": None,
        })
        counts["missions"] += 1

        now = datetime.now(timezone.utc).isoformat()
        samples = [
            (users[0], "Update the procedure manual", REC_IN_PROGRESS, -3),
            (users[0], "Review supplier contracts", REC_PENDING, 5),
            (users[1], "Close audit findings", REC_CONFIRMED, 2),
        ]
        for assignee, title, status, days in samples:
            confirmed = status == REC_CONFIRMED
            store.insert("recommendations", {
                "title": title,
                "description": f"Assigned by {chief['name']}",
                "user_id": assignee["id"],
                "created_by": chief["name"],
                "created_by_id": chief["id"],
                "department_id": dept["id"],
                "mission_id": mission["id"],
                "deadline": (today + timedelta(days=days)).isoformat(),
                "status": status,
                "completed_at": now if confirmed else None,
                "confirmed_at": now if confirmed else None,
                "confirmed_by": chief["id"] if confirmed else None,
            })
            counts["recommendations"] += 1

    logger.info("Demo seed complete: %s", counts)
    return counts
