# backend/almacen/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/almacen.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///almacen.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "sql" keeps collections in the stored_collections table, "memory" is ephemeral
    ALMACEN_STORAGE = os.environ.get("ALMACEN_STORAGE", "sql")

    # Create the key-value table on startup (no migration run needed for local dev)
    ALMACEN_CREATE_TABLES = _env_flag("ALMACEN_CREATE_TABLES", "true")

    # Write seed data for absent collections on startup
    ALMACEN_SEED_ON_START = _env_flag("ALMACEN_SEED_ON_START", "true")

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
