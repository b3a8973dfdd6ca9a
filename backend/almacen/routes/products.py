# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product catalog routes.

SECURITY: All routes require authentication.
- Read operations require a session only
- Writes require CREATE_PRODUCT / EDIT_PRODUCT / DELETE_PRODUCT

Quantity is set once on create. PUT rejects "quantity"; stock only changes
through movements and incidents.
"""
from flask import Blueprint, request, g, jsonify

from ..services import ledger_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
)
from ..decorators import require_auth, require_permission, get_state

PRODUCT_FIELD_TYPES = {
    "id": str,
    "name": str,
    "category": str,
    "quantity": int,
    "min_stock": int,
    "price": float,
    "location": str,
}

PRODUCT_POLICY = ModelValidationPolicy(
    field_types=PRODUCT_FIELD_TYPES,
    writable_fields=set(PRODUCT_FIELD_TYPES),
    required_on_create={"name", "category"},
    max_lengths={"id": 64, "name": 200, "category": 80, "location": 120},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    field_types=PRODUCT_FIELD_TYPES,
    writable_fields=set(ledger_service.PRODUCT_MUTABLE_FIELDS) | {"quantity"},
    max_lengths=PRODUCT_POLICY.max_lengths,
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _parse_bool_arg(name: str):
    raw = request.args.get(name)
    if raw is None:
        return None
    return raw.strip().lower() in {"1", "true", "yes"}


@products_bp.get("")
@require_auth
def list_products():
    """
    List products sorted by name.

    Query params:
    - category: exact category match
    - search: substring of name, category or location
    - low_stock: true/false
    """
    items = ledger_service.list_products(
        get_state(),
        category=request.args.get("category"),
        search=request.args.get("search"),
        low_stock=_parse_bool_arg("low_stock"),
    )
    return jsonify({"items": [p.to_dict() for p in items], "count": len(items)}), 200


@products_bp.get("/categories")
@require_auth
def list_categories():
    return jsonify({"categories": ledger_service.list_categories(get_state())}), 200


@products_bp.get("/<product_id>")
@require_auth
def get_product(product_id: str):
    product = ledger_service.require_product(get_state(), product_id)
    return jsonify(product.to_dict()), 200


@products_bp.post("")
@require_auth
@require_permission("CREATE_PRODUCT")
def create_product_route():
    """
    Create a new product.

    Requires CREATE_PRODUCT permission.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    created = ledger_service.create_product(get_state(), patch=patch, actor=g.current_user)
    return jsonify(created.to_dict()), 201


@products_bp.put("/<product_id>")
@require_auth
@require_permission("EDIT_PRODUCT")
def update_product_route(product_id: str):
    """
    Update product master data (name, category, min_stock, price, location).

    Requires EDIT_PRODUCT permission.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    updated = ledger_service.update_product(
        get_state(), product_id=product_id, patch=patch, actor=g.current_user
    )
    return jsonify(updated.to_dict()), 200


@products_bp.delete("/<product_id>")
@require_auth
@require_permission("DELETE_PRODUCT")
def delete_product_route(product_id: str):
    """
    Delete a product. Its movements and incidents are kept.

    Requires DELETE_PRODUCT permission.
    """
    ledger_service.delete_product(get_state(), product_id=product_id, actor=g.current_user)
    return jsonify({"ok": True}), 200
