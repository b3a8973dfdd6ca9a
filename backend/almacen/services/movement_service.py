# Overview: Service-layer operations for stock movements; the entrada/salida approval workflow.

"""
Almacen Movement Workflow

================================================================================
PURPOSE: Govern how a stock entry/exit request becomes a committed quantity change
================================================================================

STATE MACHINE:
    pendiente -> aprobado
    pendiente -> rechazado

    pendiente: proposed, does NOT affect stock
    aprobado:  terminal, its signed delta has been applied to the ledger once
    rechazado: terminal, never affects stock

INITIAL STATE:
    Decided once, at creation, from config.auto_approve_movements. Changing
    the config later never re-evaluates existing movements.

RULES:
1. approve/reject are legal only from pendiente; anything else raises
   InvalidTransition (this includes approving twice).
2. The ledger delta (+quantity entrada, -quantity salida) is applied exactly
   once per movement: either inside create (auto-approve) or inside approve.
3. A successful stock-changing transition writes the products collection once
   and the movements collection once. A failed transition writes nothing.
4. The actor is re-checked against the capability table here, not only at
   the route.
================================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..errors import InvalidQuantity, InvalidTransition, MovementNotFound
from ..models import Identity, Movement, MOVEMENT_STATUSES, MOVEMENT_TYPES
from ..state import InventoryState, new_id
from ..storage import MOVEMENTS, PRODUCTS
from ..time_utils import utcnow
from ..validation import ValidationError
from . import ledger_service
from .permission_service import require_permission


logger = logging.getLogger(__name__)


def validate_status(status: str) -> None:
    if status not in MOVEMENT_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(MOVEMENT_STATUSES)}"
        )


def validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity(quantity)
    return quantity


def require_movement(state: InventoryState, movement_id: str) -> Movement:
    movement = state.find_movement(movement_id)
    if movement is None:
        raise MovementNotFound(movement_id)
    return movement


def create_movement(
    state: InventoryState,
    *,
    product_id: str,
    type: str,
    quantity: int,
    reason: str = "",
    actor: Identity,
) -> Movement:
    """
    Register a stock entry or exit.

    Raises:
        PermissionDenied: actor lacks CREATE_MOVEMENT
        InvalidQuantity: quantity is not a positive integer
        ValidationError: type is not entrada/salida
        ProductNotFound: product_id does not resolve
    """
    require_permission(actor, "CREATE_MOVEMENT")
    validate_quantity(quantity)
    if type not in MOVEMENT_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(MOVEMENT_TYPES)}")

    with state.transaction():
        product = ledger_service.require_product(state, product_id)
        now = utcnow()

        movement = Movement(
            id=new_id(),
            product_id=product.id,
            product_name=product.name,
            type=type,
            quantity=quantity,
            date=now,
            reason=(reason or "").strip(),
            requested_by=actor.name,
        )

        # Policy is frozen here; later config changes never revisit it
        if state.config.auto_approve_movements:
            ledger_service.apply(state, product.id, movement.signed_delta)
            movement.status = "aprobado"
            movement.reviewed_by = actor.name
            movement.reviewed_at = now
            state.movements.append(movement)
            state.persist(PRODUCTS, MOVEMENTS)
        else:
            state.movements.append(movement)
            state.persist(MOVEMENTS)

    logger.info(
        "Movement %s created by %s: %s %s x%s (%s)",
        movement.id, actor.email, movement.type, movement.product_id,
        movement.quantity, movement.status,
    )
    return movement


def approve_movement(state: InventoryState, movement_id: str, *, reviewer: Identity) -> Movement:
    """
    Approve a pending movement (pendiente -> aprobado) and commit its delta.

    Raises:
        PermissionDenied: reviewer lacks APPROVE_MOVEMENT
        MovementNotFound: movement_id does not resolve
        InvalidTransition: movement is not pendiente (already reviewed)
        ProductNotFound: the product was deleted after the movement was created
    """
    require_permission(reviewer, "APPROVE_MOVEMENT")

    with state.transaction():
        movement = require_movement(state, movement_id)
        if movement.status != "pendiente":
            raise InvalidTransition("movement", movement.id, movement.status, "approve")

        ledger_service.apply(state, movement.product_id, movement.signed_delta)
        movement.status = "aprobado"
        movement.reviewed_by = reviewer.name
        movement.reviewed_at = utcnow()
        state.persist(PRODUCTS, MOVEMENTS)

    logger.info("Movement %s approved by %s", movement.id, reviewer.email)
    return movement


def reject_movement(state: InventoryState, movement_id: str, *, reviewer: Identity) -> Movement:
    """Reject a pending movement (pendiente -> rechazado). Stock is untouched."""
    require_permission(reviewer, "APPROVE_MOVEMENT")

    with state.transaction():
        movement = require_movement(state, movement_id)
        if movement.status != "pendiente":
            raise InvalidTransition("movement", movement.id, movement.status, "reject")

        movement.status = "rechazado"
        movement.reviewed_by = reviewer.name
        movement.reviewed_at = utcnow()
        state.persist(MOVEMENTS)

    logger.info("Movement %s rejected by %s", movement.id, reviewer.email)
    return movement


def list_movements(
    state: InventoryState,
    *,
    status: str | None = None,
    type: str | None = None,
    product_id: str | None = None,
    search: str | None = None,
    since: datetime | None = None,
    limit: int | None = None,
) -> list[Movement]:
    """
    Query movements, newest first.

    USAGE EXAMPLES:
    - Approval queue: list_movements(state, status="pendiente")
    - History for one product: list_movements(state, product_id="3")
    """
    if status is not None:
        validate_status(status)

    indexed = list(enumerate(state.movements))
    if status is not None:
        indexed = [(i, m) for i, m in indexed if m.status == status]
    if type is not None:
        indexed = [(i, m) for i, m in indexed if m.type == type]
    if product_id is not None:
        indexed = [(i, m) for i, m in indexed if m.product_id == str(product_id)]
    if search:
        needle = search.strip().lower()
        indexed = [
            (i, m) for i, m in indexed
            if needle in m.product_name.lower()
            or needle in m.reason.lower()
            or needle in m.requested_by.lower()
        ]
    if since is not None:
        indexed = [(i, m) for i, m in indexed if m.date >= since]

    # Ties on date keep the later-registered movement first
    indexed.sort(key=lambda pair: (pair[1].date, pair[0]), reverse=True)
    items = [m for _, m in indexed]
    return items[:limit] if limit is not None else items


def movement_counts(state: InventoryState) -> dict:
    counts = {status: 0 for status in MOVEMENT_STATUSES}
    for m in state.movements:
        counts[m.status] = counts.get(m.status, 0) + 1
    counts["total"] = len(state.movements)
    return counts


def movement_totals(movements: list[Movement]) -> dict:
    """Sum of units by direction for a list of movements."""
    return {
        "entradas": sum(m.quantity for m in movements if m.type == "entrada"),
        "salidas": sum(m.quantity for m in movements if m.type == "salida"),
    }
