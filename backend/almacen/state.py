# Overview: Explicit application state (all collections) with an injected storage port.

"""
Almacen application state.

InventoryState holds every collection in memory and writes them back through
the storage port. There is exactly one instance per Flask app
(app.extensions["almacen"]); services receive it as their first argument.

Concurrency model:
- One process, one state, one re-entrant lock.
- Every workflow transition runs inside state.transaction(): transitions are
  serialized, so "approve only from pendiente" and the single-writer rule on
  product quantity hold even under a threaded WSGI server.
- If the body of a transaction raises, in-memory collections are restored to
  their snapshot. Kinds already persisted by that transaction are written
  again from the snapshot so storage never keeps half a transition.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Iterator

from . import seed
from .errors import CorruptState
from .models import Product, Movement, Incident, AppUser, SystemConfig, SessionRecord
from .storage import (
    StoragePort,
    PRODUCTS,
    MOVEMENTS,
    INCIDENTS,
    APP_USERS,
    CONFIG,
    SESSION,
)
from .validation import CONFIG_FIELD_TYPES, CONFIG_POLICY, validate_payload, enforce_rules_config


logger = logging.getLogger(__name__)

_SNAPSHOT_FIELDS = ("products", "movements", "incidents", "app_users", "config", "session")


def _decode_config(raw) -> SystemConfig:
    """Type-check a stored config blob; keys from older versions are ignored."""
    if not isinstance(raw, dict):
        raise ValueError(f"config must be an object, got {type(raw).__name__}")
    known = {k: v for k, v in raw.items() if k in CONFIG_FIELD_TYPES}
    patch = validate_payload(payload=known, policy=CONFIG_POLICY, partial=True)
    enforce_rules_config(patch)
    return SystemConfig.from_dict(patch)


def new_id() -> str:
    return uuid.uuid4().hex


class InventoryState:
    def __init__(
        self,
        storage: StoragePort,
        *,
        products: list[Product] | None = None,
        movements: list[Movement] | None = None,
        incidents: list[Incident] | None = None,
        app_users: list[AppUser] | None = None,
        config: SystemConfig | None = None,
        session: SessionRecord | None = None,
    ):
        self.storage = storage
        self.products = products if products is not None else seed.initial_products()
        self.movements = movements if movements is not None else []
        self.incidents = incidents if incidents is not None else []
        self.app_users = app_users if app_users is not None else seed.initial_app_users()
        self.config = config if config is not None else seed.default_config()
        self.session = session
        self._lock = threading.RLock()
        # Kinds persisted by the outermost open transaction; None outside one
        self._written: set[str] | None = None

    # ------------------------------------------------------------------
    # Loading / persistence
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, storage: StoragePort) -> "InventoryState":
        """
        Load every collection from storage.

        Absent collections fall back to seed data. Unreadable ones also fall
        back to seed data, but the failure is logged as a warning so it stays
        observable.
        """
        def _load(kind, decode):
            try:
                raw = storage.load(kind)
            except CorruptState as exc:
                logger.warning("Falling back to defaults: %s", exc)
                return None
            if raw is None:
                return None
            try:
                return decode(raw)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning(
                    "Falling back to defaults: stored collection '%s' has invalid records (%s)",
                    kind, exc,
                )
                return None

        return cls(
            storage,
            products=_load(PRODUCTS, lambda raw: [Product.from_dict(r) for r in raw]),
            movements=_load(MOVEMENTS, lambda raw: [Movement.from_dict(r) for r in raw]),
            incidents=_load(INCIDENTS, lambda raw: [Incident.from_dict(r) for r in raw]),
            app_users=_load(APP_USERS, lambda raw: [AppUser.from_dict(r) for r in raw]),
            config=_load(CONFIG, _decode_config),
            session=_load(SESSION, SessionRecord.from_dict),
        )

    def serialize(self, kind: str):
        if kind == PRODUCTS:
            return [p.to_dict() for p in self.products]
        if kind == MOVEMENTS:
            return [m.to_dict() for m in self.movements]
        if kind == INCIDENTS:
            return [i.to_dict() for i in self.incidents]
        if kind == APP_USERS:
            return [u.to_dict() for u in self.app_users]
        if kind == CONFIG:
            return self.config.to_dict()
        if kind == SESSION:
            return self.session.to_dict() if self.session else None
        raise ValueError(f"Unknown collection kind: {kind}")

    def persist(self, *kinds: str) -> None:
        """Write the given collections wholesale through the storage port."""
        if self._written is not None:
            self._written.update(kinds)
        self._write(kinds)

    def _write(self, kinds) -> None:
        collections = {}
        for kind in kinds:
            if kind == SESSION and self.session is None:
                self.storage.clear(SESSION)
                continue
            collections[kind] = self.serialize(kind)
        if collections:
            self.storage.save_many(collections)

    def _restore_storage(self, kinds: set[str]) -> None:
        """Re-save pre-transition values for kinds a failed transition may have written."""
        for kind in sorted(kinds):
            try:
                self._write([kind])
            except Exception:
                logger.exception(
                    "Could not restore stored collection '%s' after a failed transition", kind
                )

    def seed_missing(self) -> list[str]:
        """Persist the in-memory value of every collection that storage lacks."""
        written = []
        for kind in (PRODUCTS, MOVEMENTS, INCIDENTS, APP_USERS, CONFIG):
            try:
                present = self.storage.load(kind) is not None
            except CorruptState:
                present = False
            if not present:
                self.persist(kind)
                written.append(kind)
        return written

    def reset(self) -> None:
        """Replace every collection with seed data and persist it."""
        with self.transaction():
            self.products = seed.initial_products()
            self.movements = []
            self.incidents = []
            self.app_users = seed.initial_app_users()
            self.config = seed.default_config()
            self.session = None
            self.persist(PRODUCTS, MOVEMENTS, INCIDENTS, APP_USERS, CONFIG, SESSION)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator["InventoryState"]:
        with self._lock:
            snapshot = {name: copy.deepcopy(getattr(self, name)) for name in _SNAPSHOT_FIELDS}
            outermost = self._written is None
            if outermost:
                self._written = set()
            try:
                yield self
            except BaseException:
                for name, value in snapshot.items():
                    setattr(self, name, value)
                if outermost and self._written:
                    self._restore_storage(self._written)
                raise
            finally:
                if outermost:
                    self._written = None

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_product(self, product_id: str) -> Product | None:
        return next((p for p in self.products if p.id == str(product_id)), None)

    def find_movement(self, movement_id: str) -> Movement | None:
        return next((m for m in self.movements if m.id == str(movement_id)), None)

    def find_incident(self, incident_id: str) -> Incident | None:
        return next((i for i in self.incidents if i.id == str(incident_id)), None)

    def find_app_user(self, user_id: str) -> AppUser | None:
        return next((u for u in self.app_users if u.id == str(user_id)), None)
