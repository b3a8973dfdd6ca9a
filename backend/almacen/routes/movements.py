# Overview: Flask API routes for movements operations; parses input and returns JSON responses.

"""
Movement workflow routes

Endpoints:
- GET  /api/movements                 -> list (filters: status, type, product_id, search, since, limit)
- GET  /api/movements/counts          -> totals per status
- GET  /api/movements/<id>            -> one movement
- POST /api/movements                 -> create (CREATE_MOVEMENT)
- POST /api/movements/<id>/approve    -> pendiente -> aprobado (APPROVE_MOVEMENT)
- POST /api/movements/<id>/reject     -> pendiente -> rechazado (APPROVE_MOVEMENT)

Response for transitions includes the updated product when stock changed.
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_permission, get_state
from ..services import movement_service, ledger_service
from ..time_utils import parse_iso_datetime
from ..validation import ValidationError


movements_bp = Blueprint("movements", __name__, url_prefix="/api/movements")


def _with_product(movement) -> dict:
    body = movement.to_dict()
    product = ledger_service.get(get_state(), movement.product_id)
    body["product"] = product.to_dict() if product else None
    return body


@movements_bp.get("")
@require_auth
def list_movements_route():
    try:
        since = parse_iso_datetime(request.args.get("since"))
    except ValueError:
        return jsonify({"error": "since must be an ISO-8601 datetime"}), 400

    limit = request.args.get("limit", type=int)
    if limit is not None and limit < 1:
        return jsonify({"error": "limit must be >= 1"}), 400

    items = movement_service.list_movements(
        get_state(),
        status=request.args.get("status"),
        type=request.args.get("type"),
        product_id=request.args.get("product_id"),
        search=request.args.get("search"),
        since=since,
        limit=limit,
    )
    return jsonify({
        "items": [m.to_dict() for m in items],
        "count": len(items),
        "totals": movement_service.movement_totals(items),
    }), 200


@movements_bp.get("/counts")
@require_auth
def movement_counts_route():
    return jsonify(movement_service.movement_counts(get_state())), 200


@movements_bp.get("/<movement_id>")
@require_auth
def get_movement_route(movement_id: str):
    movement = movement_service.require_movement(get_state(), movement_id)
    return jsonify(movement.to_dict()), 200


@movements_bp.post("")
@require_auth
@require_permission("CREATE_MOVEMENT")
def create_movement_route():
    """
    Register an entrada or salida.

    Request body:
    {
        "product_id": "3",
        "type": "entrada",
        "quantity": 10,
        "reason": "Reposición proveedor"
    }
    """
    data = request.get_json(silent=True) or {}

    product_id = data.get("product_id")
    movement_type = data.get("type")
    if not product_id or not movement_type:
        return jsonify({"error": "product_id and type are required"}), 400

    reason = data.get("reason") or ""
    if not isinstance(reason, str):
        raise ValidationError("reason must be a string")

    movement = movement_service.create_movement(
        get_state(),
        product_id=str(product_id),
        type=movement_type,
        quantity=data.get("quantity"),
        reason=reason,
        actor=g.current_user,
    )
    return jsonify(_with_product(movement)), 201


@movements_bp.post("/<movement_id>/approve")
@require_auth
@require_permission("APPROVE_MOVEMENT")
def approve_movement_route(movement_id: str):
    movement = movement_service.approve_movement(get_state(), movement_id, reviewer=g.current_user)
    return jsonify(_with_product(movement)), 200


@movements_bp.post("/<movement_id>/reject")
@require_auth
@require_permission("APPROVE_MOVEMENT")
def reject_movement_route(movement_id: str):
    movement = movement_service.reject_movement(get_state(), movement_id, reviewer=g.current_user)
    return jsonify(_with_product(movement)), 200
