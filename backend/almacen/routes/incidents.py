# Overview: Flask API routes for incidents operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_permission, get_state
from ..services import incident_service, ledger_service


incidents_bp = Blueprint("incidents", __name__, url_prefix="/api/incidents")


@incidents_bp.get("")
@require_auth
def list_incidents_route():
    items = incident_service.list_incidents(
        get_state(),
        status=request.args.get("status"),
        type=request.args.get("type"),
        product_id=request.args.get("product_id"),
    )
    return jsonify({"items": [i.to_dict() for i in items], "count": len(items)}), 200


@incidents_bp.get("/counts")
@require_auth
def incident_counts_route():
    state = get_state()
    counts = incident_service.incident_counts(state)
    # Advisory flag surfaced to clients; incidents always start pendiente
    counts["require_incident_approval"] = state.config.require_incident_approval
    return jsonify(counts), 200


@incidents_bp.get("/<incident_id>")
@require_auth
def get_incident_route(incident_id: str):
    incident = incident_service.require_incident(get_state(), incident_id)
    return jsonify(incident.to_dict()), 200


@incidents_bp.post("")
@require_auth
@require_permission("CREATE_INCIDENT")
def create_incident_route():
    data = request.get_json(silent=True) or {}

    product_id = data.get("product_id")
    incident_type = data.get("type")
    if not product_id or not incident_type:
        return jsonify({"error": "product_id and type are required"}), 400

    incident = incident_service.create_incident(
        get_state(),
        product_id=str(product_id),
        type=incident_type,
        quantity=data.get("quantity"),
        description=data.get("description") or "",
        actor=g.current_user,
    )
    return jsonify(incident.to_dict()), 201


@incidents_bp.post("/<incident_id>/resolve")
@require_auth
@require_permission("RESOLVE_INCIDENT")
def resolve_incident_route(incident_id: str):
    """
    Close an incident.

    Request body: {"outcome": "resuelto" | "rechazado"}
    """
    data = request.get_json(silent=True) or {}
    outcome = data.get("outcome")
    if not outcome:
        return jsonify({"error": "outcome is required"}), 400

    state = get_state()
    incident = incident_service.resolve_incident(state, incident_id, outcome, resolver=g.current_user)

    body = incident.to_dict()
    product = ledger_service.get(state, incident.product_id)
    body["product"] = product.to_dict() if product else None
    return jsonify(body), 200
