# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service, permission_service


def get_state():
    """The InventoryState owned by the current app."""
    return current_app.extensions["almacen"]


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def require_auth(f):
    """
    Require a valid bearer token for the current session.

    Sets g.current_user to the session Identity {email, role, name}.

    SECURITY: Returns 401 if:
    - No Authorization header
    - Token does not match the active session
    - Session expired (idle timeout)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        identity = session_service.validate_session(get_state(), token)

        if not identity:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = identity

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require the session role to hold a capability.

    Workflow services re-check the same capability; this decorator only
    produces the early 403 response.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_permission(
                    g.current_user,
                    permission_code,
                    resource=request.path,
                )
            except permission_service.PermissionDenied as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": str(e)
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
