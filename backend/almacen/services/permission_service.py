# Overview: Service-layer operations for permission; role/capability checks.

"""
Role Policy

WHY: Enforce role-based access control in one place. The presentation layer
(decorators) checks before calling a workflow, and every workflow mutator
re-checks here, so a caller that forgets the route decorator still cannot
transition state.

DESIGN PRINCIPLES:
- Fail closed: unknown roles and unknown actions are denied
- Pure: can_perform has no side effects
- Log denials only: permission grants are not logged
"""

from __future__ import annotations

import logging

from ..errors import PermissionDenied
from ..models import Identity
from ..permissions import DEFAULT_ROLE_PERMISSIONS, validate_permission_code


logger = logging.getLogger(__name__)


def can_perform(role: str | None, action: str) -> bool:
    """Return True if the role's capability table includes the action."""
    if not validate_permission_code(action):
        return False
    return action in DEFAULT_ROLE_PERMISSIONS.get(role, ())


def get_role_permissions(role: str | None) -> set[str]:
    return set(DEFAULT_ROLE_PERMISSIONS.get(role, ()))


def require_permission(actor: Identity | str | None, action: str, *, resource: str | None = None) -> None:
    """
    Require the actor (or bare role) to hold a capability.

    Raises PermissionDenied and logs a warning when it does not.

    Usage:
        require_permission(actor, "APPROVE_MOVEMENT")
    """
    role = actor.role if isinstance(actor, Identity) else actor
    if can_perform(role, action):
        return

    logger.warning(
        "Permission denied: actor=%s role=%s action=%s resource=%s",
        actor.email if isinstance(actor, Identity) else None,
        role,
        action,
        resource,
    )
    raise PermissionDenied(role, action)
