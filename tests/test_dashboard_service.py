"""
Dashboard statistics — counts follow the caller's visible scope.
"""

from datetime import timedelta

from missionboard.services.dashboard_service import get_dashboard_stats


def _add_rec(world, rid, user_id="user_u", department_id="d1", **fields):
    record = {
        "id": rid, "title": rid, "description": "", "user_id": user_id,
        "department_id": department_id, "mission_id": "mission_m", "status": "in_progress",
        "deadline": (world.today + timedelta(days=3)).isoformat(),
        "completed_at": None, "confirmed_at": None, "confirmed_by": None,
    }
    record.update(fields)
    world.store.insert("recommendations", record)


def _seed(world):
    _add_rec(world, "late", deadline=(world.today - timedelta(days=1)).isoformat())
    _add_rec(world, "waiting", user_id="user_u2", status="pending")
    _add_rec(world, "done", status="confirmed", confirmed_at="2026-01-05T00:00:00+00:00",
             confirmed_by="chief1", completed_at="2026-01-05T00:00:00+00:00")
    _add_rec(world, "elsewhere", user_id="chief2", department_id="d2")


class TestDashboardStats:

    def test_admin_sees_everything(self, world):
        _seed(world)
        stats = get_dashboard_stats(world.state_for(world.admin), today=world.today)
        assert stats["total"] == 5
        assert stats["in_progress"] == 2
        assert stats["overdue"] == 1
        assert stats["pending"] == 1
        assert stats["confirmed"] == 1
        assert stats["completion_rate"] == 20
        assert stats["departments"] == 2
        assert stats["users"] == 2
        assert stats["missions"] == {"total": 1, "active": 1, "completed": 0, "overdue": 0}

    def test_admin_breakdown_by_department(self, world):
        _seed(world)
        stats = get_dashboard_stats(world.state_for(world.admin), today=world.today)
        by_acronym = {b["acronym"]: b for b in stats["by_department"]}
        assert by_acronym["D1"]["total"] == 4
        assert by_acronym["D1"]["confirmed"] == 1
        assert by_acronym["D1"]["completion_rate"] == 25
        assert by_acronym["D2"]["total"] == 1

    def test_chief_scope(self, world):
        _seed(world)
        stats = get_dashboard_stats(world.state_for(world.chief2), today=world.today)
        assert stats["total"] == 1
        assert stats["missions"]["total"] == 0
        assert "by_department" not in stats

    def test_user_scope(self, world):
        _seed(world)
        stats = get_dashboard_stats(world.state_for(world.user_u), today=world.today)
        assert stats["total"] == 3
        assert stats["users"] == 1
        assert stats["recently_confirmed"][0]["id"] == "done"

    def test_upcoming_sorted_by_deadline_without_confirmed(self, world):
        _seed(world)
        stats = get_dashboard_stats(world.state_for(world.admin), today=world.today)
        ids = [r["id"] for r in stats["upcoming"]]
        assert ids[0] == "late"
        assert "done" not in ids

    def test_empty_scope_has_zero_rate(self, world):
        world.store.delete("recommendations", "rec_r")
        stats = get_dashboard_stats(world.state_for(world.user_u), today=world.today)
        assert stats["total"] == 0
        assert stats["completion_rate"] == 0
