# Overview: Domain error taxonomy shared by services, routes and the CLI.

"""
Almacen domain errors.

All workflow failures are local and recoverable: services raise one of these,
the calling layer (routes, CLI) decides the user-facing message. Nothing here
is retried automatically; a retried approve on an already-approved movement
must fail with InvalidTransition, never re-apply stock.
"""

from __future__ import annotations


class InventoryError(ValueError):
    """Base class for domain errors raised by the workflow services."""


class NotFound(InventoryError):
    entity = "Record"

    def __init__(self, record_id):
        self.record_id = record_id
        super().__init__(f"{self.entity} {record_id} not found")


class ProductNotFound(NotFound):
    entity = "Product"


class MovementNotFound(NotFound):
    entity = "Movement"


class IncidentNotFound(NotFound):
    entity = "Incident"


class UserNotFound(NotFound):
    entity = "User"


class InvalidTransition(InventoryError):
    """Raised when a state transition is attempted from the wrong status."""

    def __init__(self, entity: str, record_id, current: str, attempted: str):
        self.entity = entity
        self.record_id = record_id
        self.current = current
        self.attempted = attempted
        super().__init__(
            f"Cannot {attempted} {entity} {record_id}: "
            f"current status is '{current}', must be 'pendiente'"
        )


class InvalidQuantity(InventoryError):
    def __init__(self, quantity):
        self.quantity = quantity
        super().__init__(f"quantity must be a positive integer (got {quantity!r})")


class PermissionDenied(InventoryError):
    def __init__(self, role, action: str):
        self.role = role
        self.action = action
        super().__init__(f"Permission denied: role '{role}' cannot {action}")


class AuthenticationFailed(InventoryError):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class CorruptState(InventoryError):
    """A persisted collection could not be decoded."""

    def __init__(self, kind: str, reason: str):
        self.kind = kind
        self.reason = reason
        super().__init__(f"Stored collection '{kind}' is unreadable: {reason}")
