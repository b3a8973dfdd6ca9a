# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /api/auth/login   -> bearer token + identity + capabilities
- POST /api/auth/logout  -> ends the current session
- GET  /api/auth/me      -> identity, capabilities and navigation for the session role

SECURITY FEATURES:
- bcrypt verification against the fixed system account table
- Session token returned once; only its SHA-256 hash is persisted
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services import permission_service
from ..permissions import get_navigation
from ..errors import AuthenticationFailed
from ..decorators import require_auth, get_state
from ..time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _identity_payload(identity) -> dict:
    return {
        "user": identity.to_dict(),
        "permissions": sorted(permission_service.get_role_permissions(identity.role)),
        "navigation": get_navigation(identity.role),
    }


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and start the session.

    Returns user info and session token on success.
    Token must be included in Authorization header for protected routes.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email") or data.get("username")
    password = data.get("password")

    if not all([email, password]):
        return jsonify({"error": "email and password required"}), 400

    try:
        identity = auth_service.login(
            email,
            password,
            rounds=current_app.config["BCRYPT_ROUNDS"],
        )
    except AuthenticationFailed as e:
        return jsonify({"error": str(e)}), 401

    session, token = session_service.create_session(get_state(), identity)

    return jsonify({
        **_identity_payload(identity),
        "token": token,
        "created_at": to_utc_z(session.created_at),
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.end_session(get_state())
    return jsonify({"message": "Logged out successfully"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify(_identity_payload(g.current_user)), 200
