"""
Record store round trips shared by the services.

    call_store("delete mission", store.delete, "missions", mission_id)
    resolve_profile_name(store, profile_id)     # "Unknown" on any failure
"""

import logging

from missionboard.core.exceptions import RemoteFailureError
from missionboard.integrations.record_store import RecordStoreError

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"


def call_store(operation: str, fn, *args, **kwargs):
    """Run one store call, turning RecordStoreError into RemoteFailureError."""
    try:
        return fn(*args, **kwargs)
    except RecordStoreError as exc:
        logger.exception("Record store call failed: %s", operation)
        raise RemoteFailureError(operation, exc.detail) from exc


def resolve_profile_name(store, profile_id) -> str:
    """Display name for a profile id; enrichment only, never raises."""
    if not profile_id:
        return UNKNOWN_NAME
    try:
        profile = store.get("profiles", profile_id)
    except RecordStoreError:
        logger.warning("Could not resolve profile name for %s", profile_id)
        return UNKNOWN_NAME
    return (profile or {}).get("name") or UNKNOWN_NAME


def cached_profile_name(state, profile_id) -> str:
    """Same lookup against the local cache (no round trip)."""
    profile = state.get("profiles", profile_id) if profile_id else None
    return (profile or {}).get("name") or UNKNOWN_NAME
