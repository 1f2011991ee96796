"""
Local cache — the per-request projection of the record store.

The cache is an immutable value.  Every function here returns a new
``LocalCache`` and leaves its input untouched, so reconciliation can be
tested without a store, a request or a subscriber.

Each record id maps to a two-phase ``CacheEntry``:

    confirmed_remote   last value delivered by the initial fetch or the change feed
    pending_local      optimistic value written after a successful store call

Readers see ``pending_local`` when present, otherwise ``confirmed_remote``.
A change-feed event for the id replaces the whole entry (last write wins,
no version check), which drops any optimistic value.

    fetch ──▶ confirmed_remote
    write ok ──▶ pending_local        (readers see the optimistic value)
    feed event ──▶ confirmed_remote    (pending_local cleared)
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace

from missionboard.integrations.record_store import (
    EVENT_ADDED,
    EVENT_MODIFIED,
    EVENT_REMOVED,
    ChangeEvent,
)


@dataclass(frozen=True)
class CacheEntry:
    confirmed_remote: dict | None = None
    pending_local: dict | None = None
    # optimistic delete: hidden from readers until the feed confirms removal
    deleted_locally: bool = False

    @property
    def value(self) -> dict | None:
        if self.deleted_locally:
            return None
        if self.pending_local is not None:
            return self.pending_local
        return self.confirmed_remote

    @property
    def is_pending(self) -> bool:
        return self.deleted_locally or self.pending_local is not None


@dataclass(frozen=True)
class LocalCache:
    """Collection name → {record id → CacheEntry}."""

    collections: dict[str, dict[str, CacheEntry]] = field(default_factory=dict)

    def entry(self, collection: str, record_id: str) -> CacheEntry | None:
        return self.collections.get(collection, {}).get(record_id)

    def get(self, collection: str, record_id: str) -> dict | None:
        entry = self.entry(collection, record_id)
        return entry.value if entry else None

    def records(self, collection: str) -> list[dict]:
        """Visible values of one collection, in insertion order."""
        values = []
        for entry in self.collections.get(collection, {}).values():
            if entry.value is not None:
                values.append(entry.value)
        return values


def _with_entries(cache: LocalCache, collection: str, entries: dict[str, CacheEntry]) -> LocalCache:
    collections = dict(cache.collections)
    collections[collection] = entries
    return replace(cache, collections=collections)


# ═══════════════════════════════════════════════════════════════════════════
#  Reconciliation
# ═══════════════════════════════════════════════════════════════════════════

def load(cache: LocalCache, collection: str, records: list[dict]) -> LocalCache:
    """Replace a collection with a fresh fetch (all entries confirmed)."""
    entries = {
        r["id"]: CacheEntry(confirmed_remote=copy.deepcopy(r))
        for r in records
    }
    return _with_entries(cache, collection, entries)


def merge(cache: LocalCache, event: ChangeEvent) -> LocalCache:
    """Apply one change-feed event and return the new cache.

    added / modified: the event's record becomes the confirmed value and
    any optimistic value for the id is discarded.
    removed: the entry is dropped.
    """
    entries = dict(cache.collections.get(event.collection, {}))

    if event.kind in (EVENT_ADDED, EVENT_MODIFIED):
        if event.record is None:
            return cache
        entries[event.record_id] = CacheEntry(confirmed_remote=copy.deepcopy(event.record))
    elif event.kind == EVENT_REMOVED:
        if event.record_id not in entries:
            return cache
        del entries[event.record_id]
    else:
        raise ValueError(f"Unknown change event kind: {event.kind}")

    return _with_entries(cache, event.collection, entries)


def apply_optimistic(cache: LocalCache, collection: str, record_id: str, changes: dict) -> LocalCache:
    """Record an optimistic value for ``record_id``.

    ``changes`` is merged over what readers currently see.  For an id the
    cache has never seen (a fresh insert), ``changes`` is the whole record.
    """
    entries = dict(cache.collections.get(collection, {}))
    current = entries.get(record_id)

    base = current.value if current else None
    pending = copy.deepcopy(base) if base is not None else {"id": record_id}
    pending.update(copy.deepcopy(changes))

    if current is None:
        entries[record_id] = CacheEntry(pending_local=pending)
    else:
        entries[record_id] = replace(current, pending_local=pending, deleted_locally=False)
    return _with_entries(cache, collection, entries)


def apply_optimistic_delete(cache: LocalCache, collection: str, record_id: str) -> LocalCache:
    """Hide ``record_id`` until the feed confirms the removal."""
    entries = dict(cache.collections.get(collection, {}))
    current = entries.get(record_id)
    if current is None:
        return cache
    entries[record_id] = replace(current, pending_local=None, deleted_locally=True)
    return _with_entries(cache, collection, entries)
