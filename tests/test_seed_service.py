"""
Demo seed — departments, accounts and recommendations in every status.
"""

from missionboard.integrations.record_store import InMemoryRecordStore
from missionboard.services.seed_service import seed_demo


class TestSeedDemo:

    def test_seed_counts_and_statuses(self):
        store = InMemoryRecordStore()
        counts = seed_demo(store)
        assert counts == {"departments": 2, "profiles": 7, "missions": 2, "recommendations": 6}
        statuses = {r["status"] for r in store.query("recommendations")}
        assert statuses == {"in_progress", "pending", "confirmed"}
        for rec in store.query("recommendations", status="confirmed"):
            assert rec["confirmed_at"] and rec["confirmed_by"]

    def test_seed_is_skipped_when_departments_exist(self):
        store = InMemoryRecordStore(seed={"departments": [{"id": "d", "acronym": "X", "name": "X"}]})
        assert seed_demo(store)["profiles"] == 0
        assert store.query("profiles") == []
