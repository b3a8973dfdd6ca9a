# Overview: Flask API routes for settings operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_permission, get_state
from ..services import settings_service


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
def get_settings():
    return jsonify(settings_service.get_config(get_state()).to_dict()), 200


@settings_bp.put("")
@require_auth
@require_permission("EDIT_CONFIG")
def update_settings():
    """
    Update system configuration.

    Keys not present in the body keep their current value. New values only
    affect movements and incidents created afterwards.
    """
    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({"error": "Invalid JSON payload"}), 400

    try:
        config = settings_service.update_config(get_state(), payload=payload, actor=g.current_user)
    except settings_service.SettingsValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(config.to_dict()), 200


@settings_bp.post("/reset")
@require_auth
@require_permission("EDIT_CONFIG")
def reset_settings():
    config = settings_service.reset_config(get_state(), actor=g.current_user)
    return jsonify(config.to_dict()), 200
