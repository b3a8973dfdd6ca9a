# Overview: Seed data used when a collection has never been saved or is unreadable.

from __future__ import annotations

from datetime import datetime

from .models import Product, AppUser, SystemConfig


def initial_products() -> list[Product]:
    return [
        Product(id="1", name="Laptop HP Pavilion 15", category="Electrónica",
                quantity=15, min_stock=5, price=899.99, location="Pasillo A, Estante 1"),
        Product(id="2", name="Mouse Logitech MX Master", category="Accesorios",
                quantity=45, min_stock=20, price=79.99, location="Pasillo B, Estante 3"),
        Product(id="3", name="Teclado Mecánico RGB", category="Accesorios",
                quantity=3, min_stock=10, price=149.99, location="Pasillo B, Estante 2"),
        Product(id="4", name='Monitor Dell 27"', category="Electrónica",
                quantity=8, min_stock=5, price=329.99, location="Pasillo A, Estante 2"),
        Product(id="5", name="Silla Ergonómica", category="Mobiliario",
                quantity=12, min_stock=5, price=299.99, location="Bodega Principal"),
        Product(id="6", name="Impresora Multifuncional", category="Electrónica",
                quantity=6, min_stock=3, price=249.99, location="Pasillo C, Estante 1"),
        Product(id="7", name="Webcam HD 1080p", category="Accesorios",
                quantity=25, min_stock=10, price=59.99, location="Pasillo B, Estante 1"),
        Product(id="8", name="Escritorio Ajustable", category="Mobiliario",
                quantity=4, min_stock=5, price=449.99, location="Bodega Principal"),
    ]


def initial_app_users() -> list[AppUser]:
    return [
        AppUser(id="1", name="Admin Principal", email="admin@almacen.com",
                role="admin", status="active", created_at=datetime(2025, 1, 1)),
        AppUser(id="2", name="Manager López", email="manager@almacen.com",
                role="manager", status="active", created_at=datetime(2025, 2, 15)),
        AppUser(id="3", name="Operador García", email="operator@almacen.com",
                role="operator", status="active", created_at=datetime(2025, 3, 10)),
        AppUser(id="4", name="Auditor Martínez", email="auditor@almacen.com",
                role="auditor", status="active", created_at=datetime(2025, 4, 5)),
        AppUser(id="5", name="María González", email="maria.gonzalez@almacen.com",
                role="operator", status="active", created_at=datetime(2025, 6, 20)),
    ]


def default_config() -> SystemConfig:
    return SystemConfig()
