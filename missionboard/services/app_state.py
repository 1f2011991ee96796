"""
Application state — the caller's identity plus their local cache.

One ``AppState`` is built per request and passed explicitly to every
service function; nothing reads it from a global.  Each service documents
which parts it reads and writes.

    state = load_state(store, auth)     # initial fetch
    state.connect(store)                # change feed → state.apply_remote
    ... service calls ...
    store.dispatch()                    # feed delivers authoritative rows
    state.disconnect()

Recommendations pass through ``normalize_legacy_record`` on every way into
the cache, so services only ever see canonical statuses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from missionboard.core.exceptions import RemoteFailureError, UnauthenticatedError
from missionboard.integrations.record_store import COLLECTIONS, ChangeEvent, RecordStoreError
from missionboard.services import local_cache
from missionboard.services.local_cache import LocalCache
from missionboard.services.recommendation_lifecycle import normalize_legacy_record

logger = logging.getLogger(__name__)

# readable without a session (sign-up picks a department)
PUBLIC_COLLECTIONS = ("departments",)


@dataclass(frozen=True)
class AuthContext:
    """What the authentication collaborator knows about the caller.

    ``profile`` carries at least ``{id, role, department_id, name}``.
    """

    session: dict | None = None
    profile: dict | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.session) and self.profile is not None

    @classmethod
    def anonymous(cls) -> "AuthContext":
        return cls()


def _normalize(collection: str, record: dict | None) -> dict | None:
    if record is not None and collection == "recommendations":
        return normalize_legacy_record(record)
    return record


class AppState:
    def __init__(self, auth: AuthContext, cache: LocalCache | None = None) -> None:
        self.auth = auth
        self.cache = cache if cache is not None else LocalCache()
        self._unsubscribers = []

    # ── Identity ────────────────────────────────────────────────────────

    @property
    def profile(self) -> dict | None:
        return self.auth.profile if self.auth.is_authenticated else None

    def require_profile(self) -> dict:
        """The caller's profile, or UnauthenticatedError."""
        profile = self.profile
        if profile is None:
            raise UnauthenticatedError()
        return profile

    # ── Reads ───────────────────────────────────────────────────────────

    def get(self, collection: str, record_id: str) -> dict | None:
        return self.cache.get(collection, record_id)

    def records(self, collection: str) -> list[dict]:
        return self.cache.records(collection)

    # ── Writes ──────────────────────────────────────────────────────────

    def apply_remote(self, event: ChangeEvent) -> None:
        """Change-feed handler."""
        if event.record is not None and event.collection == "recommendations":
            event = ChangeEvent(
                kind=event.kind,
                collection=event.collection,
                record_id=event.record_id,
                record=normalize_legacy_record(event.record),
                received_at=event.received_at,
            )
        self.cache = local_cache.merge(self.cache, event)

    def apply_optimistic(self, collection: str, record_id: str, changes: dict) -> None:
        self.cache = local_cache.apply_optimistic(self.cache, collection, record_id, changes)

    def apply_optimistic_insert(self, collection: str, record: dict) -> None:
        record = _normalize(collection, record)
        self.cache = local_cache.apply_optimistic(self.cache, collection, record["id"], record)

    def apply_optimistic_delete(self, collection: str, record_id: str) -> None:
        self.cache = local_cache.apply_optimistic_delete(self.cache, collection, record_id)

    # ── Change feed ─────────────────────────────────────────────────────

    def connect(self, store) -> None:
        """Subscribe to every collection this state has loaded."""
        for collection in self.cache.collections:
            self._unsubscribers.append(store.subscribe(collection, self.apply_remote))

    def disconnect(self) -> None:
        while self._unsubscribers:
            self._unsubscribers.pop()()

    @property
    def connected(self) -> bool:
        return bool(self._unsubscribers)


def load_state(store, auth: AuthContext) -> AppState:
    """Initial fetch: mirror the collections the caller may read.

    Anonymous callers get the public collections only.  Visibility within a
    loaded collection is decided by access_scope.py, not here, so guards can
    tell "not found" from "forbidden".

    Raises:
        RemoteFailureError: the store could not be read.
    """
    collections = COLLECTIONS if auth.is_authenticated else PUBLIC_COLLECTIONS
    cache = LocalCache()
    for collection in collections:
        try:
            records = store.query(collection)
        except RecordStoreError as exc:
            logger.exception("Initial fetch of %s failed", collection)
            raise RemoteFailureError(f"load {collection}", exc.detail) from exc
        records = [_normalize(collection, r) for r in records]
        cache = local_cache.load(cache, collection, records)
    return AppState(auth, cache)
