# Overview: Flask API routes for the app user directory; parses input and returns JSON responses.

"""
User directory routes (admin only).

All endpoints require MANAGE_USERS. Directory entries are independent of the
login accounts: creating a user here does not grant a login.
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_permission, get_state
from ..services import user_service
from ..validation import validate_payload, ValidationError


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission("MANAGE_USERS")
def list_users_route():
    items = user_service.list_users(
        get_state(),
        role=request.args.get("role"),
        status=request.args.get("status"),
        search=request.args.get("search"),
    )
    return jsonify({"items": [u.to_dict() for u in items], "count": len(items)}), 200


@users_bp.get("/<user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def get_user_route(user_id: str):
    user = user_service.get_user(get_state(), user_id)
    return jsonify(user.to_dict()), 200


@users_bp.post("")
@require_auth
@require_permission("MANAGE_USERS")
def create_user_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=user_service.USER_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    user = user_service.create_user(get_state(), patch=patch, actor=g.current_user)
    return jsonify(user.to_dict()), 201


@users_bp.put("/<user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def update_user_route(user_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=user_service.USER_POLICY, partial=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    user = user_service.update_user(get_state(), user_id=user_id, patch=patch, actor=g.current_user)
    return jsonify(user.to_dict()), 200


@users_bp.delete("/<user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def delete_user_route(user_id: str):
    user_service.delete_user(get_state(), user_id=user_id, actor=g.current_user)
    return jsonify({"ok": True}), 200
