# Overview: Service-layer operations for session; the persisted current-actor identity.

"""
Session Token Management Service

WHY: The system is single-session: one interactive user drives it at a time.
The current identity {email, role, name} survives restarts in the "session"
collection; a new login replaces the previous session.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- 12-hour idle timeout (SESSION_IDLE_TIMEOUT)
- No password is ever stored with the session
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from datetime import timedelta

from ..models import Identity, SessionRecord
from ..state import InventoryState
from ..storage import SESSION
from ..time_utils import utcnow


logger = logging.getLogger(__name__)

SESSION_IDLE_TIMEOUT = timedelta(hours=12)


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(state: InventoryState, identity: Identity) -> tuple[SessionRecord, str]:
    """
    Start a session for identity, replacing any previous one.

    Returns (session_record, plaintext_token).
    """
    token = generate_token()
    now = utcnow()
    with state.transaction():
        previous = state.session
        state.session = SessionRecord(
            identity=identity,
            token_hash=hash_token(token),
            created_at=now,
            last_used_at=now,
        )
        state.persist(SESSION)

    if previous is not None and previous.identity.email != identity.email:
        logger.info("Session for %s replaced by %s", previous.identity.email, identity.email)
    logger.info("Session started for %s", identity.email)
    return state.session, token


def validate_session(state: InventoryState, token: str) -> Identity | None:
    """
    Return the session identity if token matches the current session.

    Returns None if there is no session, the token does not match, or the
    session has been idle longer than SESSION_IDLE_TIMEOUT (the stale session
    is then cleared).
    """
    if not token:
        return None

    # Serialized with logins and logouts so a replaced session is never touched
    with state.transaction():
        session = state.session
        if session is None:
            return None
        if not hmac.compare_digest(session.token_hash, hash_token(token)):
            return None

        now = utcnow()
        if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
            logger.info("Session for %s expired", session.identity.email)
            end_session(state)
            return None

        # Activity tracking stays in memory; persisting on every request is not needed
        session.last_used_at = now
        return session.identity


def current_identity(state: InventoryState) -> Identity | None:
    """The persisted current actor, if any (no token check; for CLI use)."""
    return state.session.identity if state.session else None


def end_session(state: InventoryState) -> None:
    with state.transaction():
        state.session = None
        state.persist(SESSION)
