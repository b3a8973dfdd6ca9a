# Overview: Service-layer operations for the application user directory.

from __future__ import annotations

import logging

from ..errors import UserNotFound
from ..models import AppUser, Identity, ROLES, USER_STATUSES
from ..state import InventoryState, new_id
from ..storage import APP_USERS
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, ValidationError, ConflictError
from .permission_service import require_permission


logger = logging.getLogger(__name__)

USER_POLICY = ModelValidationPolicy(
    field_types={"name": str, "email": str, "role": str, "status": str},
    writable_fields={"name", "email", "role", "status"},
    required_on_create={"name", "email", "role"},
    max_lengths={"name": 120, "email": 254},
)

USER_MUTABLE_FIELDS = {"name", "email", "role", "status"}


def enforce_rules_user(patch: dict) -> None:
    if "email" in patch and "@" not in patch["email"]:
        raise ValidationError("email must be a valid address")
    if "role" in patch and patch["role"] not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    if "status" in patch and patch["status"] not in USER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(USER_STATUSES)}")


def _email_taken(state: InventoryState, email: str, *, exclude_id: str | None = None) -> bool:
    wanted = email.lower()
    return any(u.email.lower() == wanted and u.id != exclude_id for u in state.app_users)


def get_user(state: InventoryState, user_id: str) -> AppUser:
    user = state.find_app_user(user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user


def list_users(
    state: InventoryState,
    *,
    role: str | None = None,
    status: str | None = None,
    search: str | None = None,
) -> list[AppUser]:
    items = list(state.app_users)
    if role:
        items = [u for u in items if u.role == role]
    if status:
        items = [u for u in items if u.status == status]
    if search:
        needle = search.strip().lower()
        items = [u for u in items if needle in u.name.lower() or needle in u.email.lower()]
    return items


def create_user(state: InventoryState, *, patch: dict, actor: Identity) -> AppUser:
    require_permission(actor, "MANAGE_USERS")
    enforce_rules_user(patch)

    with state.transaction():
        if _email_taken(state, patch["email"]):
            raise ConflictError("Email already exists.")

        user = AppUser(
            id=new_id(),
            name=patch["name"],
            email=patch["email"],
            role=patch["role"],
            status=patch.get("status") or "active",
            created_at=utcnow(),
        )
        state.app_users.append(user)
        state.persist(APP_USERS)

    logger.info("App user %s created by %s", user.email, actor.email)
    return user


def update_user(state: InventoryState, *, user_id: str, patch: dict, actor: Identity) -> AppUser:
    """Update directory fields; created_at is preserved."""
    require_permission(actor, "MANAGE_USERS")
    enforce_rules_user(patch)

    with state.transaction():
        user = get_user(state, user_id)
        if "email" in patch and _email_taken(state, patch["email"], exclude_id=user.id):
            raise ConflictError("Email already exists.")
        for k, v in patch.items():
            if k in USER_MUTABLE_FIELDS:
                setattr(user, k, v)
        state.persist(APP_USERS)

    logger.info("App user %s updated by %s", user.email, actor.email)
    return user


def delete_user(state: InventoryState, *, user_id: str, actor: Identity) -> AppUser:
    require_permission(actor, "MANAGE_USERS")

    with state.transaction():
        user = get_user(state, user_id)
        if user.email.lower() == actor.email.lower():
            raise ConflictError("You cannot delete your own user.")
        state.app_users.remove(user)
        state.persist(APP_USERS)

    logger.info("App user %s deleted by %s", user.email, actor.email)
    return user
