"""
Record store contract — the persistence collaborator.

The mission/recommendation core never talks to the database directly.
Every read and write goes through a ``RecordStore``:

  - point reads by id                         get(collection, record_id)
  - collection queries with equality filters  query(collection, user_id=..., role=...)
  - insert / update / delete by id
  - a change feed per collection              subscribe(collection, callback)

Records are plain dicts (the ``to_dict()`` shape of the models).

Change feed delivery:
  Writes do not call subscribers inline.  Each successful write appends a
  ``ChangeEvent`` to the store's outbox; ``dispatch()`` drains the outbox
  in receipt order.  This mirrors a real-time channel that delivers the
  authoritative row some time after the write round trip returned, and lets
  callers observe the optimistic value before the feed catches up.

Implementations:
  InMemoryRecordStore  — dict-backed, for development and tests (this module)
  SqlRecordStore       — Flask-SQLAlchemy, the system of record (sql_store.py)
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

logger = logging.getLogger(__name__)

COLLECTIONS = ("departments", "profiles", "missions", "recommendations")

EVENT_ADDED = "added"
EVENT_MODIFIED = "modified"
EVENT_REMOVED = "removed"


class RecordStoreError(Exception):
    """Raised when a store call fails (backend error, constraint, lost connection)."""

    def __init__(self, operation: str, collection: str, detail: str | None = None) -> None:
        self.operation = operation
        self.collection = collection
        self.detail = detail
        msg = f"{operation} on {collection} failed"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


@dataclass(frozen=True)
class ChangeEvent:
    """One notification from the change feed.

    ``record`` is the full authoritative record for added/modified events
    and the last known record (possibly None) for removed events.
    """

    kind: str
    collection: str
    record_id: str
    record: dict | None = None
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Subscriber = Callable[[ChangeEvent], None]


class RecordStore(ABC):
    """Base class: subscriber bookkeeping and the buffered change feed."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscriber]] = {}
        self._outbox: list[ChangeEvent] = []
        self._lock = threading.Lock()

    # ── CRUD contract ───────────────────────────────────────────────────

    @abstractmethod
    def get(self, collection: str, record_id: str) -> dict | None:
        """Return one record or None."""

    @abstractmethod
    def query(self, collection: str, **equals) -> list[dict]:
        """Return all records whose fields equal every keyword given."""

    @abstractmethod
    def insert(self, collection: str, data: dict) -> dict:
        """Create a record and return it as stored."""

    @abstractmethod
    def update(self, collection: str, record_id: str, changes: dict) -> dict:
        """Apply a partial update and return the stored record."""

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> None:
        """Remove a record permanently."""

    # ── Change feed ─────────────────────────────────────────────────────

    def subscribe(self, collection: str, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for events on ``collection``.

        Returns a zero-argument function that removes the subscription.
        """
        _check_collection(collection)
        with self._lock:
            self._subscribers.setdefault(collection, []).append(callback)

        def _unsubscribe():
            with self._lock:
                callbacks = self._subscribers.get(collection, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return _unsubscribe

    def pending_events(self) -> int:
        with self._lock:
            return len(self._outbox)

    def dispatch(self) -> int:
        """Deliver every buffered event, oldest first. Returns the count."""
        with self._lock:
            events, self._outbox = self._outbox, []
            subscribers = {c: list(cbs) for c, cbs in self._subscribers.items()}
        for event in events:
            for callback in subscribers.get(event.collection, []):
                try:
                    callback(event)
                except Exception:
                    # delivery continues past a failing subscriber
                    logger.exception("Change feed subscriber failed on %s %s/%s",
                                     event.kind, event.collection, event.record_id)
        if events:
            logger.debug("Dispatched %d change event(s)", len(events))
        return len(events)

    def _publish(self, kind: str, collection: str, record_id: str, record: dict | None) -> None:
        event = ChangeEvent(
            kind=kind,
            collection=collection,
            record_id=record_id,
            record=copy.deepcopy(record) if record is not None else None,
        )
        with self._lock:
            self._outbox.append(event)


def _check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection: {collection}")


# ═══════════════════════════════════════════════════════════════════════════
#  In-memory implementation
# ═══════════════════════════════════════════════════════════════════════════

class InMemoryRecordStore(RecordStore):
    """Dict-backed store for development and tests.

    ``fail_on`` makes selected operations raise ``RecordStoreError``,
    e.g. ``store.fail_on.add(("update", "recommendations"))``.
    """

    def __init__(self, seed: dict[str, list[dict]] | None = None) -> None:
        super().__init__()
        self._data: dict[str, dict[str, dict]] = {c: {} for c in COLLECTIONS}
        self.fail_on: set[tuple[str, str]] = set()
        for collection, records in (seed or {}).items():
            _check_collection(collection)
            for record in records:
                self._data[collection][record["id"]] = copy.deepcopy(record)

    def _maybe_fail(self, operation: str, collection: str) -> None:
        if (operation, collection) in self.fail_on:
            raise RecordStoreError(operation, collection, "simulated backend failure")

    def get(self, collection, record_id):
        _check_collection(collection)
        self._maybe_fail("get", collection)
        record = self._data[collection].get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def query(self, collection, **equals):
        _check_collection(collection)
        self._maybe_fail("query", collection)
        return [
            copy.deepcopy(r) for r in self._data[collection].values()
            if all(r.get(k) == v for k, v in equals.items())
        ]

    def insert(self, collection, data):
        _check_collection(collection)
        self._maybe_fail("insert", collection)
        record = copy.deepcopy(data)
        record.setdefault("id", str(uuid.uuid4()))
        record.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        if record["id"] in self._data[collection]:
            raise RecordStoreError("insert", collection, f"duplicate id {record['id']}")
        self._data[collection][record["id"]] = record
        self._publish(EVENT_ADDED, collection, record["id"], record)
        return copy.deepcopy(record)

    def update(self, collection, record_id, changes):
        _check_collection(collection)
        self._maybe_fail("update", collection)
        record = self._data[collection].get(record_id)
        if record is None:
            raise RecordStoreError("update", collection, f"no record {record_id}")
        record.update(copy.deepcopy(changes))
        self._publish(EVENT_MODIFIED, collection, record_id, record)
        return copy.deepcopy(record)

    def delete(self, collection, record_id):
        _check_collection(collection)
        self._maybe_fail("delete", collection)
        record = self._data[collection].pop(record_id, None)
        if record is None:
            raise RecordStoreError("delete", collection, f"no record {record_id}")
        self._publish(EVENT_REMOVED, collection, record_id, record)
