"""
Authentication and session tests.

Verifies:
- Credentials are checked with bcrypt against the four system accounts
- Email matching is exact and case-sensitive
- Sessions persist identity and the token hash only
- A new login replaces the previous session
"""

import threading

import pytest

from almacen.errors import AuthenticationFailed
from almacen.services import auth_service, session_service
from almacen.state import InventoryState
from almacen.storage import SESSION

from conftest import TEST_BCRYPT_ROUNDS, auth_headers, get_auth_token


class TestAuthenticate:
    @pytest.mark.parametrize(
        "email,password,role,name",
        [
            ("admin@almacen.com", "admin123", "admin", "Admin Principal"),
            ("manager@almacen.com", "manager123", "manager", "Manager López"),
            ("operator@almacen.com", "operator123", "operator", "Operador García"),
            ("auditor@almacen.com", "auditor123", "auditor", "Auditor Martínez"),
        ],
    )
    def test_system_accounts(self, email, password, role, name):
        identity = auth_service.authenticate(email, password, rounds=TEST_BCRYPT_ROUNDS)
        assert identity is not None
        assert (identity.email, identity.role, identity.name) == (email, role, name)

    @pytest.mark.parametrize(
        "email,password",
        [
            ("admin@almacen.com", "wrong"),
            ("ADMIN@almacen.com", "admin123"),
            (" admin@almacen.com", "admin123"),
            ("maria.gonzalez@almacen.com", "admin123"),
            ("", "admin123"),
            ("admin@almacen.com", ""),
        ],
    )
    def test_rejected(self, email, password):
        assert auth_service.authenticate(email, password, rounds=TEST_BCRYPT_ROUNDS) is None

    def test_login_raises(self):
        with pytest.raises(AuthenticationFailed):
            auth_service.login("admin@almacen.com", "nope", rounds=TEST_BCRYPT_ROUNDS)

    def test_hash_is_not_plaintext(self):
        hashed = auth_service.hash_password("admin123", rounds=TEST_BCRYPT_ROUNDS)
        assert hashed != "admin123"
        assert auth_service.verify_password("admin123", hashed)
        assert not auth_service.verify_password("admin124", hashed)
        assert not auth_service.verify_password("admin123", "not-a-hash")


class TestSessions:
    def test_create_and_validate(self, state, storage, manager):
        session, token = session_service.create_session(state, manager)

        assert session_service.validate_session(state, token) == manager
        assert session_service.validate_session(state, "forged") is None

        stored = storage.load(SESSION)
        assert stored["email"] == manager.email
        assert stored["token_hash"] == session_service.hash_token(token)
        assert token not in storage.raw(SESSION)

    def test_new_login_replaces_session(self, state, manager, operator):
        _, first = session_service.create_session(state, manager)
        _, second = session_service.create_session(state, operator)

        assert session_service.validate_session(state, first) is None
        assert session_service.validate_session(state, second) == operator

    def test_session_survives_restart(self, state, storage, auditor):
        _, token = session_service.create_session(state, auditor)

        restarted = InventoryState.load(storage)

        assert session_service.validate_session(restarted, token) == auditor
        assert session_service.current_identity(restarted) == auditor

    def test_idle_session_expires(self, state, admin):
        session, token = session_service.create_session(state, admin)
        session.last_used_at = session.last_used_at - session_service.SESSION_IDLE_TIMEOUT * 2

        assert session_service.validate_session(state, token) is None
        assert state.session is None

    def test_end_session(self, state, storage, admin):
        _, token = session_service.create_session(state, admin)
        session_service.end_session(state)

        assert session_service.validate_session(state, token) is None
        assert storage.raw(SESSION) is None

    def test_validation_waits_for_open_transition(self, state, manager):
        _, token = session_service.create_session(state, manager)
        results = []
        worker = threading.Thread(
            target=lambda: results.append(session_service.validate_session(state, token))
        )

        with state.transaction():
            worker.start()
            worker.join(0.2)
            assert worker.is_alive()
            assert results == []

        worker.join(5)
        assert results == [manager]

    def test_waiting_validation_sees_replaced_session(self, state, manager, operator):
        _, old_token = session_service.create_session(state, manager)
        results = []
        worker = threading.Thread(
            target=lambda: results.append(session_service.validate_session(state, old_token))
        )

        with state.transaction():
            worker.start()
            worker.join(0.2)
            replacement, _ = session_service.create_session(state, operator)
            touched = replacement.last_used_at

        worker.join(5)
        assert results == [None]
        assert state.session.identity == operator
        assert state.session.last_used_at == touched


class TestAuthApi:
    def test_login_returns_token_and_capabilities(self, client):
        resp = client.post("/api/auth/login", json={"email": "operator@almacen.com", "password": "operator123"})

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["token"]
        assert body["user"] == {"email": "operator@almacen.com", "role": "operator", "name": "Operador García"}
        assert body["permissions"] == ["CREATE_INCIDENT", "CREATE_MOVEMENT"]
        assert "approve" not in {entry["id"] for entry in body["navigation"]}

    def test_login_bad_password(self, client):
        resp = client.post("/api/auth/login", json={"email": "admin@almacen.com", "password": "x"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid credentials"

    def test_login_missing_fields(self, client):
        resp = client.post("/api/auth/login", json={"email": "admin@almacen.com"})
        assert resp.status_code == 400

    def test_me_and_logout(self, client):
        token = get_auth_token(client, "auditor@almacen.com", "auditor123")
        headers = auth_headers(token)

        me = client.get("/api/auth/me", headers=headers)
        assert me.status_code == 200
        assert me.get_json()["user"]["role"] == "auditor"

        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_second_login_invalidates_first_token(self, client):
        first = get_auth_token(client, "admin@almacen.com", "admin123")
        get_auth_token(client, "manager@almacen.com", "manager123")

        assert client.get("/api/auth/me", headers=auth_headers(first)).status_code == 401
