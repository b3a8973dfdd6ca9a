# Overview: Service-layer operations for auth; the fixed credential table and login check.

"""
Authentication collaborator

WHY: Every workflow call must be attributable to an Identity {email, role, name}.

The login table is a fixed list of four system accounts, separate from the
AppUser directory managed in user_service (creating an AppUser does not
create a login).

SECURITY NOTES:
- Passwords are never compared in plaintext: each seed password is hashed
  with bcrypt once per process and verified with bcrypt.checkpw
- Email match is exact and case-sensitive
- Unknown emails still run one bcrypt check so response time does not reveal
  which accounts exist
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

import bcrypt

from ..errors import AuthenticationFailed
from ..models import Identity


logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 12


@dataclass(frozen=True)
class SystemUser:
    email: str
    password: str
    role: str
    name: str


SYSTEM_USERS = (
    SystemUser("admin@almacen.com", "admin123", "admin", "Admin Principal"),
    SystemUser("manager@almacen.com", "manager123", "manager", "Manager López"),
    SystemUser("operator@almacen.com", "operator123", "operator", "Operador García"),
    SystemUser("auditor@almacen.com", "auditor123", "auditor", "Auditor Martínez"),
)


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


@lru_cache(maxsize=None)
def _credential_table(rounds: int) -> dict[str, tuple[str, Identity]]:
    return {
        u.email: (hash_password(u.password, rounds), Identity(email=u.email, role=u.role, name=u.name))
        for u in SYSTEM_USERS
    }


@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> str:
    return hash_password("not-a-real-password", rounds)


def authenticate(email: str, password: str, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> Identity | None:
    """
    Return the Identity for valid credentials, None otherwise.
    """
    if not email or not password:
        return None

    entry = _credential_table(rounds).get(email)
    if entry is None:
        verify_password(password, _dummy_hash(rounds))
        return None

    password_hash, identity = entry
    if verify_password(password, password_hash):
        return identity
    return None


def login(email: str, password: str, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> Identity:
    """authenticate() that raises AuthenticationFailed instead of returning None."""
    identity = authenticate(email, password, rounds=rounds)
    if identity is None:
        logger.warning("Failed login attempt for %s", email)
        raise AuthenticationFailed()
    return identity
