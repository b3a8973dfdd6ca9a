# Overview: Service-layer operations for incidents; the loss/damage report workflow.

"""
Almacen Incident Workflow

STATE MACHINE:
    pendiente -> resuelto   (debits incident.quantity from the product)
    pendiente -> rechazado  (no stock change)

Incidents are always created pendiente. config.require_incident_approval is
advisory (shown to users) and does not change the initial state.

Incidents only ever debit stock; the debit is clamped at zero by the ledger.
"""

from __future__ import annotations

import logging

from ..errors import IncidentNotFound, InvalidTransition
from ..models import Identity, Incident, INCIDENT_OUTCOMES, INCIDENT_STATUSES, INCIDENT_TYPES
from ..state import InventoryState, new_id
from ..storage import INCIDENTS, PRODUCTS
from ..time_utils import utcnow
from ..validation import ValidationError
from . import ledger_service
from .movement_service import validate_quantity
from .permission_service import require_permission


logger = logging.getLogger(__name__)


def require_incident(state: InventoryState, incident_id: str) -> Incident:
    incident = state.find_incident(incident_id)
    if incident is None:
        raise IncidentNotFound(incident_id)
    return incident


def create_incident(
    state: InventoryState,
    *,
    product_id: str,
    type: str,
    quantity: int,
    description: str,
    actor: Identity,
) -> Incident:
    require_permission(actor, "CREATE_INCIDENT")
    validate_quantity(quantity)
    if type not in INCIDENT_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(INCIDENT_TYPES)}")
    description = (description or "").strip()
    if not description:
        raise ValidationError("description cannot be blank")

    with state.transaction():
        product = ledger_service.require_product(state, product_id)
        incident = Incident(
            id=new_id(),
            product_id=product.id,
            product_name=product.name,
            type=type,
            quantity=quantity,
            description=description,
            reported_by=actor.name,
            reported_at=utcnow(),
        )
        state.incidents.append(incident)
        state.persist(INCIDENTS)

    logger.info(
        "Incident %s reported by %s: %s %s x%s",
        incident.id, actor.email, incident.type, incident.product_id, incident.quantity,
    )
    return incident


def resolve_incident(
    state: InventoryState,
    incident_id: str,
    outcome: str,
    *,
    resolver: Identity,
) -> Incident:
    """
    Close a pending incident as resuelto (debit stock) or rechazado.

    Raises:
        PermissionDenied: resolver lacks RESOLVE_INCIDENT
        ValidationError: outcome is not resuelto/rechazado
        IncidentNotFound: incident_id does not resolve
        InvalidTransition: incident is already closed
        ProductNotFound: resolving as resuelto after the product was deleted
    """
    require_permission(resolver, "RESOLVE_INCIDENT")
    if outcome not in INCIDENT_OUTCOMES:
        raise ValidationError(f"outcome must be one of: {', '.join(INCIDENT_OUTCOMES)}")

    with state.transaction():
        incident = require_incident(state, incident_id)
        if incident.status != "pendiente":
            raise InvalidTransition("incident", incident.id, incident.status, "resolve")

        incident.status = outcome
        incident.resolved_by = resolver.name
        incident.resolved_at = utcnow()

        if outcome == "resuelto":
            ledger_service.apply(state, incident.product_id, -incident.quantity)
            state.persist(PRODUCTS, INCIDENTS)
        else:
            state.persist(INCIDENTS)

    logger.info("Incident %s %s by %s", incident.id, outcome, resolver.email)
    return incident


def list_incidents(
    state: InventoryState,
    *,
    status: str | None = None,
    type: str | None = None,
    product_id: str | None = None,
) -> list[Incident]:
    """Query incidents, newest first."""
    if status is not None and status not in INCIDENT_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(INCIDENT_STATUSES)}"
        )

    indexed = list(enumerate(state.incidents))
    if status is not None:
        indexed = [(i, x) for i, x in indexed if x.status == status]
    if type is not None:
        indexed = [(i, x) for i, x in indexed if x.type == type]
    if product_id is not None:
        indexed = [(i, x) for i, x in indexed if x.product_id == str(product_id)]

    indexed.sort(key=lambda pair: (pair[1].reported_at, pair[0]), reverse=True)
    return [x for _, x in indexed]


def incident_counts(state: InventoryState) -> dict:
    counts = {status: 0 for status in INCIDENT_STATUSES}
    for incident in state.incidents:
        counts[incident.status] = counts.get(incident.status, 0) + 1
    counts["total"] = len(state.incidents)
    return counts
