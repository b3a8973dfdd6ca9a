# Overview: Storage port for whole-collection persistence (load/save per kind).

"""
Almacen storage port.

Every persisted collection is loaded wholesale and saved wholesale after a
mutation; there are no partial or delta writes. Implementations:

- MemoryStorage: dict of JSON blobs, for tests and throwaway runs.
- SqlStorage: one row per kind in the stored_collections table.

save_many() writes several kinds for one transition; SqlStorage commits them
together. The in-memory loop is not atomic, so InventoryState re-saves the
pre-transition values when a transition fails after a partial write.

load() returns None when a collection has never been saved and raises
CorruptState when the stored blob cannot be decoded. Callers decide whether to
fall back to seed data (InventoryState does, and logs it).
"""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from .errors import CorruptState
from .extensions import db
from .models import StoredCollection


PRODUCTS = "products"
MOVEMENTS = "movements"
INCIDENTS = "incidents"
APP_USERS = "app_users"
CONFIG = "config"
SESSION = "session"

ALL_KINDS = (PRODUCTS, MOVEMENTS, INCIDENTS, APP_USERS, CONFIG, SESSION)


def _encode(kind: str, collection: Any) -> str:
    try:
        return json.dumps(collection, ensure_ascii=False, sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Collection '{kind}' is not JSON serializable: {exc}") from exc


def _decode(kind: str, payload: str) -> Any:
    try:
        return json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise CorruptState(kind, str(exc)) from exc


class StoragePort:
    """Interface: load/save one logical collection by kind."""

    def load(self, kind: str) -> Any | None:
        raise NotImplementedError

    def save(self, kind: str, collection: Any) -> None:
        raise NotImplementedError

    def save_many(self, collections: dict[str, Any]) -> None:
        """Save several kinds; implementations that can, write them atomically."""
        for kind, collection in collections.items():
            self.save(kind, collection)

    def clear(self, kind: str) -> None:
        raise NotImplementedError


class MemoryStorage(StoragePort):
    def __init__(self, initial: dict[str, str] | None = None):
        # kind -> raw JSON blob; raw strings allow simulating corrupt payloads
        self._blobs: dict[str, str] = dict(initial or {})

    def load(self, kind: str) -> Any | None:
        payload = self._blobs.get(kind)
        if payload is None:
            return None
        return _decode(kind, payload)

    def save(self, kind: str, collection: Any) -> None:
        self._blobs[kind] = _encode(kind, collection)

    def clear(self, kind: str) -> None:
        self._blobs.pop(kind, None)

    def raw(self, kind: str) -> str | None:
        return self._blobs.get(kind)


class SqlStorage(StoragePort):
    """
    Key-value storage on the stored_collections table.

    Must be used inside a Flask application context (db.session).
    """

    def load(self, kind: str) -> Any | None:
        row = db.session.get(StoredCollection, kind)
        if row is None:
            return None
        return _decode(kind, row.payload)

    def save(self, kind: str, collection: Any) -> None:
        payload = _encode(kind, collection)
        try:
            row = db.session.get(StoredCollection, kind)
            if row is None:
                db.session.add(StoredCollection(kind=kind, payload=payload))
            else:
                row.payload = payload
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

    def save_many(self, collections: dict[str, Any]) -> None:
        """Write every kind in one commit; nothing is written if any kind fails."""
        payloads = {kind: _encode(kind, c) for kind, c in collections.items()}
        try:
            for kind, payload in payloads.items():
                row = db.session.get(StoredCollection, kind)
                if row is None:
                    db.session.add(StoredCollection(kind=kind, payload=payload))
                else:
                    row.payload = payload
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

    def clear(self, kind: str) -> None:
        try:
            db.session.query(StoredCollection).filter_by(kind=kind).delete()
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

    def describe(self) -> list[dict]:
        rows = db.session.query(StoredCollection).order_by(StoredCollection.kind.asc()).all()
        return [r.to_dict() for r in rows]
