"""
Storage port and state loading tests.

Verifies:
- Collections round-trip through MemoryStorage and SqlStorage
- Corrupt or invalid blobs fall back to seed data with a logged warning
- seed_missing writes only absent collections
- reset restores seed data and clears the session
- A transition that fails part way leaves storage as it was before it
"""

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest
from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from almacen import create_app
from almacen.errors import CorruptState
from almacen.extensions import db
from almacen.models import Identity, SessionRecord, SystemConfig
from almacen.seed import initial_products
from almacen.state import InventoryState
from almacen.storage import (
    ALL_KINDS,
    APP_USERS,
    CONFIG,
    INCIDENTS,
    MOVEMENTS,
    PRODUCTS,
    SESSION,
    MemoryStorage,
    SqlStorage,
)
from almacen.services import incident_service, movement_service
from almacen.time_utils import parse_iso_datetime, to_utc_z, utcnow

from conftest import RecordingStorage


class FailingStorage(RecordingStorage):
    """Raises on saves of one kind while fail_kind is set."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_kind = None

    def save(self, kind, collection):
        if kind == self.fail_kind:
            raise OSError(f"cannot write {kind}")
        super().save(kind, collection)


def _stored_quantity(storage, product_id):
    return next(p["quantity"] for p in storage.load(PRODUCTS) if p["id"] == product_id)


def test_memory_load_absent_returns_none():
    assert MemoryStorage().load(PRODUCTS) is None


def test_memory_corrupt_blob_raises():
    storage = MemoryStorage({PRODUCTS: "{not json"})
    with pytest.raises(CorruptState) as exc_info:
        storage.load(PRODUCTS)
    assert exc_info.value.kind == PRODUCTS


def test_state_survives_reload(operator):
    storage = MemoryStorage()
    state = InventoryState(storage)
    state.seed_missing()
    movement = movement_service.create_movement(
        state, product_id="3", type="entrada", quantity=2, reason="Reposición", actor=operator
    )

    reloaded = InventoryState.load(storage)

    again = reloaded.find_movement(movement.id)
    assert again is not None
    assert again.status == "pendiente"
    assert again.reason == "Reposición"
    assert [p.id for p in reloaded.products] == [p.id for p in initial_products()]


def test_corrupt_collection_falls_back_to_seed(caplog):
    storage = MemoryStorage({PRODUCTS: "]]]", CONFIG: json.dumps({"currency": "EUR"})})

    with caplog.at_level(logging.WARNING, logger="almacen.state"):
        state = InventoryState.load(storage)

    assert [p.id for p in state.products] == [p.id for p in initial_products()]
    assert state.config.currency == "EUR"
    assert any("products" in record.getMessage() for record in caplog.records)


def test_invalid_records_fall_back_to_seed(caplog):
    storage = MemoryStorage({MOVEMENTS: json.dumps([{"id": "1", "quantity": "many"}])})

    with caplog.at_level(logging.WARNING, logger="almacen.state"):
        state = InventoryState.load(storage)

    assert state.movements == []
    assert any("movements" in record.getMessage() for record in caplog.records)


def test_seed_missing_writes_only_absent():
    storage = MemoryStorage({INCIDENTS: "[]"})
    state = InventoryState.load(storage)

    written = state.seed_missing()

    assert INCIDENTS not in written
    assert PRODUCTS in written
    assert SESSION not in written
    assert state.seed_missing() == []


def test_session_round_trip_and_clear():
    storage = MemoryStorage()
    state = InventoryState(storage)
    now = utcnow()
    state.session = SessionRecord(
        identity=Identity(email="admin@almacen.com", role="admin", name="Admin Principal"),
        token_hash="abc",
        created_at=now,
        last_used_at=now,
    )
    state.persist(SESSION)

    stored = storage.load(SESSION)
    assert stored["email"] == "admin@almacen.com"
    assert "password" not in stored

    assert InventoryState.load(storage).session.identity.role == "admin"

    state.session = None
    state.persist(SESSION)
    assert storage.raw(SESSION) is None


def test_reset_restores_seed(operator):
    storage = MemoryStorage()
    state = InventoryState(storage)
    movement_service.create_movement(state, product_id="1", type="salida", quantity=1, actor=operator)
    state.products.pop()

    state.reset()

    assert state.movements == []
    assert len(state.products) == len(initial_products())
    assert storage.load(MOVEMENTS) == []
    assert storage.raw(SESSION) is None


def test_config_that_is_not_an_object_falls_back(caplog):
    storage = MemoryStorage({CONFIG: "[1, 2]"})

    with caplog.at_level(logging.WARNING, logger="almacen.state"):
        state = InventoryState.load(storage)

    assert state.config == SystemConfig()
    assert any("config" in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize(
    "stored",
    [
        {"auto_approve_movements": "no"},
        {"low_stock_threshold": "twenty"},
        {"low_stock_threshold": -5},
        {"company_name": None},
    ],
)
def test_config_with_bad_values_falls_back(stored):
    state = InventoryState.load(MemoryStorage({CONFIG: json.dumps(stored)}))

    assert state.config == SystemConfig()
    assert state.config.auto_approve_movements is False


def test_config_ignores_unknown_keys():
    stored = {"currency": "EUR", "auto_approve_movements": True, "theme": "dark"}

    state = InventoryState.load(MemoryStorage({CONFIG: json.dumps(stored)}))

    assert state.config.currency == "EUR"
    assert state.config.auto_approve_movements is True


@pytest.mark.parametrize("kind", [PRODUCTS, MOVEMENTS, INCIDENTS, APP_USERS])
def test_list_collection_stored_as_object_falls_back(kind):
    state = InventoryState.load(MemoryStorage({kind: json.dumps({"id": "1"})}))

    assert state.serialize(kind) == InventoryState(MemoryStorage()).serialize(kind)


def test_session_stored_as_list_is_ignored():
    state = InventoryState.load(MemoryStorage({SESSION: json.dumps(["admin@almacen.com"])}))

    assert state.session is None


def test_app_starts_with_unreadable_config():
    app = create_app(
        config={
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "BCRYPT_ROUNDS": 4,
        },
        storage=MemoryStorage({CONFIG: "[1, 2]"}),
    )

    resp = app.test_client().get("/api/system/health")

    assert resp.status_code == 200
    assert app.extensions["almacen"].config == SystemConfig()


def test_timestamps_are_utc_to_the_second():
    assert parse_iso_datetime("2026-10-01T10:00:00+02:00") == datetime(2026, 10, 1, 8)
    assert parse_iso_datetime("2026-10-01T08:00:00Z") == datetime(2026, 10, 1, 8)
    assert parse_iso_datetime("2026-10-01") == datetime(2026, 10, 1)
    assert parse_iso_datetime("  ") is None
    assert to_utc_z(datetime(2026, 10, 1, 8, 0, 0, 123456)) == "2026-10-01T08:00:00Z"
    aware = datetime(2026, 10, 1, 5, tzinfo=timezone(timedelta(hours=-3)))
    assert to_utc_z(aware) == "2026-10-01T08:00:00Z"


def test_movement_with_numeric_date_falls_back():
    stored = [{"id": "m1", "product_id": "1", "type": "entrada", "quantity": 1, "date": 20261001}]

    state = InventoryState.load(MemoryStorage({MOVEMENTS: json.dumps(stored)}))

    assert state.movements == []


class TestPartialWriteFailure:
    def test_failed_approval_leaves_storage_unchanged(self, operator, manager):
        storage = FailingStorage()
        state = InventoryState(storage)
        state.seed_missing()
        movement = movement_service.create_movement(
            state, product_id="7", type="salida", quantity=4, actor=operator
        )
        before = _stored_quantity(storage, "7")

        storage.fail_kind = MOVEMENTS
        with pytest.raises(OSError):
            movement_service.approve_movement(state, movement.id, reviewer=manager)

        assert _stored_quantity(storage, "7") == before
        stored = next(m for m in storage.load(MOVEMENTS) if m["id"] == movement.id)
        assert stored["status"] == "pendiente"

    def test_retry_after_restart_debits_once(self, operator, manager):
        storage = FailingStorage()
        state = InventoryState(storage)
        state.seed_missing()
        movement = movement_service.create_movement(
            state, product_id="7", type="salida", quantity=4, actor=operator
        )
        before = _stored_quantity(storage, "7")
        storage.fail_kind = MOVEMENTS
        with pytest.raises(OSError):
            movement_service.approve_movement(state, movement.id, reviewer=manager)

        storage.fail_kind = None
        restarted = InventoryState.load(storage)
        movement_service.approve_movement(restarted, movement.id, reviewer=manager)

        assert restarted.find_product("7").quantity == before - 4
        assert _stored_quantity(storage, "7") == before - 4

    def test_failed_resolution_leaves_storage_unchanged(self, operator, manager):
        storage = FailingStorage()
        state = InventoryState(storage)
        state.seed_missing()
        incident = incident_service.create_incident(
            state, product_id="1", type="daño", quantity=2, description="Caja aplastada", actor=operator
        )
        before = _stored_quantity(storage, "1")

        storage.fail_kind = INCIDENTS
        with pytest.raises(OSError):
            incident_service.resolve_incident(state, incident.id, "resuelto", resolver=manager)

        assert _stored_quantity(storage, "1") == before
        assert storage.load(INCIDENTS)[0]["status"] == "pendiente"
        assert InventoryState.load(storage).find_product("1").quantity == before

    def test_restore_failure_is_logged_and_original_error_raised(self, operator, manager, caplog):
        storage = FailingStorage()
        state = InventoryState(storage)
        state.seed_missing()
        movement = movement_service.create_movement(
            state, product_id="7", type="salida", quantity=1, actor=operator
        )

        storage.fail_kind = PRODUCTS
        with caplog.at_level(logging.ERROR, logger="almacen.state"):
            with pytest.raises(OSError, match="products"):
                movement_service.approve_movement(state, movement.id, reviewer=manager)

        assert any("Could not restore" in record.getMessage() for record in caplog.records)
        assert state.find_movement(movement.id).status == "pendiente"

    def test_successful_transition_writes_each_kind_once(self, state, storage, operator, manager):
        movement = movement_service.create_movement(
            state, product_id="7", type="salida", quantity=1, actor=operator
        )
        storage.reset_saves()

        movement_service.approve_movement(state, movement.id, reviewer=manager)

        assert storage.saves == [PRODUCTS, MOVEMENTS]


class TestSqlStorage:
    @pytest.fixture
    def sql_app(self):
        app = Flask(__name__)
        app.config.update(
            SECRET_KEY="test",
            SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
            SQLALCHEMY_TRACK_MODIFICATIONS=False,
            TESTING=True,
        )
        db.init_app(app)
        with app.app_context():
            from almacen import models  # noqa: F401
            db.create_all()
            yield app
            db.session.remove()
            db.drop_all()

    def test_save_load_overwrite(self, sql_app):
        storage = SqlStorage()
        assert storage.load(PRODUCTS) is None

        storage.save(PRODUCTS, [{"id": "1", "name": "Año"}])
        storage.save(PRODUCTS, [{"id": "2", "name": "Ñandú"}])

        assert storage.load(PRODUCTS) == [{"id": "2", "name": "Ñandú"}]
        assert [row["kind"] for row in storage.describe()] == [PRODUCTS]

    def test_clear(self, sql_app):
        storage = SqlStorage()
        storage.save(SESSION, {"email": "x"})
        storage.clear(SESSION)
        assert storage.load(SESSION) is None

    def test_full_state_round_trip(self, sql_app):
        storage = SqlStorage()
        state = InventoryState(storage)
        assert sorted(state.seed_missing()) == sorted(k for k in ALL_KINDS if k != SESSION)

        reloaded = InventoryState.load(storage)

        assert [p.to_dict() for p in reloaded.products] == [p.to_dict() for p in state.products]
        assert reloaded.config == state.config
        assert [u.email for u in reloaded.app_users] == [u.email for u in state.app_users]

    def test_save_many_commits_together(self, sql_app):
        storage = SqlStorage()
        storage.save_many({PRODUCTS: [{"id": "1"}], MOVEMENTS: []})

        assert storage.load(PRODUCTS) == [{"id": "1"}]
        assert storage.load(MOVEMENTS) == []

    def test_save_many_failed_commit_writes_nothing(self, sql_app, monkeypatch):
        storage = SqlStorage()
        storage.save_many({PRODUCTS: [{"id": "1", "quantity": 10}], MOVEMENTS: []})

        def fail_commit(session):
            raise SQLAlchemyError("database is locked")

        monkeypatch.setattr(type(db.session()), "commit", fail_commit)
        with pytest.raises(SQLAlchemyError):
            storage.save_many({
                PRODUCTS: [{"id": "1", "quantity": 6}],
                MOVEMENTS: [{"id": "m1", "status": "aprobado"}],
            })
        monkeypatch.undo()

        assert storage.load(PRODUCTS) == [{"id": "1", "quantity": 10}]
        assert storage.load(MOVEMENTS) == []

    def test_save_many_unencodable_kind_writes_nothing(self, sql_app):
        storage = SqlStorage()
        storage.save(PRODUCTS, [{"id": "1", "quantity": 10}])

        with pytest.raises(ValueError, match="movements"):
            storage.save_many({PRODUCTS: [{"id": "1", "quantity": 6}], MOVEMENTS: {object()}})

        assert storage.load(PRODUCTS) == [{"id": "1", "quantity": 10}]
