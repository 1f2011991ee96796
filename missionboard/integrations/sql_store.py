"""
SQL record store — Flask-SQLAlchemy implementation of the RecordStore contract.

This is the system of record.  Each write commits its own transaction
(composite operations are sequential round trips, not atomic) and, after a
successful commit, queues a ChangeEvent carrying the record as stored.

SQLAlchemy errors are rolled back and re-raised as RecordStoreError so the
service layer can surface them as RemoteFailureError.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from missionboard.integrations.record_store import (
    EVENT_ADDED,
    EVENT_MODIFIED,
    EVENT_REMOVED,
    RecordStore,
    RecordStoreError,
    _check_collection,
)
from missionboard.models import db
from missionboard.models.mission import Mission, Recommendation
from missionboard.models.organization import Department, Profile

logger = logging.getLogger(__name__)

_MODELS = {
    "departments": Department,
    "profiles": Profile,
    "missions": Mission,
    "recommendations": Recommendation,
}

_DEFAULT_ORDER = {
    "departments": Department.name,
    "profiles": Profile.name,
    "missions": Mission.created_at.desc(),
    "recommendations": Recommendation.created_at.desc(),
}


class SqlRecordStore(RecordStore):
    """RecordStore backed by the application database.

    Must be used inside a Flask application context.

    Usage:
        store = SqlRecordStore()
        rec = store.get("recommendations", rec_id)
    """

    def _model(self, collection: str):
        _check_collection(collection)
        return _MODELS[collection]

    def _load(self, operation: str, collection: str, record_id):
        model = self._model(collection)
        try:
            return db.session.get(model, record_id)
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Record store %s failed: %s/%s", operation, collection, record_id)
            raise RecordStoreError(operation, collection, str(exc.__class__.__name__)) from exc

    def get(self, collection, record_id):
        obj = self._load("get", collection, record_id)
        return obj.to_dict() if obj else None

    def query(self, collection, **equals):
        model = self._model(collection)
        for key in equals:
            if not hasattr(model, key):
                raise ValueError(f"{model.__name__} has no field '{key}'")
        try:
            rows = (
                model.query
                .filter_by(**equals)
                .order_by(_DEFAULT_ORDER[collection])
                .all()
            )
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Record store query failed: %s %s", collection, equals)
            raise RecordStoreError("query", collection, str(exc.__class__.__name__)) from exc
        return [r.to_dict() for r in rows]

    def insert(self, collection, data):
        model = self._model(collection)
        try:
            obj = model.from_record(data)
        except KeyError as exc:
            raise RecordStoreError("insert", collection, f"missing field {exc}") from exc
        db.session.add(obj)
        self._commit("insert", collection)
        record = obj.to_dict()
        self._publish(EVENT_ADDED, collection, obj.id, record)
        logger.info("Inserted %s id=%s", collection, obj.id)
        return record

    def update(self, collection, record_id, changes):
        obj = self._load("update", collection, record_id)
        if obj is None:
            raise RecordStoreError("update", collection, f"no record {record_id}")
        obj.apply_changes(changes)
        self._commit("update", collection)
        record = obj.to_dict()
        self._publish(EVENT_MODIFIED, collection, obj.id, record)
        logger.info("Updated %s id=%s fields=%s", collection, record_id, sorted(changes))
        return record

    def delete(self, collection, record_id):
        obj = self._load("delete", collection, record_id)
        if obj is None:
            raise RecordStoreError("delete", collection, f"no record {record_id}")
        record = obj.to_dict()
        db.session.delete(obj)
        self._commit("delete", collection)
        self._publish(EVENT_REMOVED, collection, record_id, record)
        logger.info("Deleted %s id=%s", collection, record_id)

    def _commit(self, operation: str, collection: str) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Record store %s failed on %s", operation, collection)
            detail = "duplicate or constraint violation" if "Integrity" in exc.__class__.__name__ else "database error"
            raise RecordStoreError(operation, collection, detail) from exc
