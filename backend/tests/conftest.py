"""
Pytest fixtures for Almacen backend tests.

Provides a recording in-memory storage port, a standalone InventoryState for
service tests, and an app + test client for HTTP tests.

The system is single-session: logging in replaces the previous session, so
HTTP tests log in right before acting as a given role (see login_as).
"""

import pytest

from almacen import create_app
from almacen.models import Identity, Product
from almacen.state import InventoryState
from almacen.storage import MemoryStorage


# bcrypt's minimum cost; keeps login fast in tests
TEST_BCRYPT_ROUNDS = 4

PASSWORDS = {
    "admin": ("admin@almacen.com", "admin123"),
    "manager": ("manager@almacen.com", "manager123"),
    "operator": ("operator@almacen.com", "operator123"),
    "auditor": ("auditor@almacen.com", "auditor123"),
}


class RecordingStorage(MemoryStorage):
    """MemoryStorage that remembers the kind of every save."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.saves = []

    def save(self, kind, collection):
        self.saves.append(kind)
        super().save(kind, collection)

    def save_count(self, kind):
        return self.saves.count(kind)

    def reset_saves(self):
        self.saves.clear()


@pytest.fixture
def storage():
    return RecordingStorage()


@pytest.fixture
def state(storage):
    """Seeded state on recording storage; no Flask app needed."""
    return InventoryState(storage)


@pytest.fixture
def admin():
    return Identity(email="admin@almacen.com", role="admin", name="Admin Principal")


@pytest.fixture
def manager():
    return Identity(email="manager@almacen.com", role="manager", name="Manager López")


@pytest.fixture
def operator():
    return Identity(email="operator@almacen.com", role="operator", name="Operador García")


@pytest.fixture
def auditor():
    return Identity(email="auditor@almacen.com", role="auditor", name="Auditor Martínez")


@pytest.fixture
def add_product(state):
    """Factory adding a product straight to the ledger (bypasses permissions)."""
    def _add(product_id="p1", quantity=0, min_stock=0, name=None, category="Pruebas", price=10.0):
        product = Product(
            id=product_id,
            name=name or f"Producto {product_id}",
            category=category,
            quantity=quantity,
            min_stock=min_stock,
            price=price,
            location="Pasillo Z",
        )
        state.products.append(product)
        return product
    return _add


@pytest.fixture
def app(storage):
    """Create application for testing."""
    app = create_app(
        config={
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
            'SQLALCHEMY_TRACK_MODIFICATIONS': False,
            'BCRYPT_ROUNDS': TEST_BCRYPT_ROUNDS,
            'ALMACEN_SEED_ON_START': True,
        },
        storage=storage,
    )
    yield app


@pytest.fixture
def app_state(app):
    return app.extensions["almacen"]


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def login_as(client):
    """Log in as one of the four system roles and return request headers."""
    def _login(role: str) -> dict:
        email, password = PASSWORDS[role]
        token = get_auth_token(client, email, password)
        assert token, f"login failed for {role}"
        return auth_headers(token)
    return _login
