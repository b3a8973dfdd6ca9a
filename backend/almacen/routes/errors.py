# Overview: App-wide JSON error handlers mapping domain errors to HTTP status codes.

from flask import current_app, jsonify

from ..errors import (
    InventoryError,
    NotFound,
    InvalidTransition,
    InvalidQuantity,
    PermissionDenied,
    AuthenticationFailed,
    CorruptState,
)
from ..validation import ValidationError, ConflictError


def status_for(exc: Exception) -> int:
    if isinstance(exc, (ValidationError, InvalidQuantity)):
        return 400
    if isinstance(exc, AuthenticationFailed):
        return 401
    if isinstance(exc, PermissionDenied):
        return 403
    if isinstance(exc, NotFound):
        return 404
    if isinstance(exc, (InvalidTransition, ConflictError)):
        return 409
    if isinstance(exc, CorruptState):
        return 500
    return 400


def error_body(exc: Exception) -> dict:
    body = {"error": str(exc)}
    if isinstance(exc, PermissionDenied):
        body = {"error": "Permission denied", "required_permission": exc.action, "message": str(exc)}
    elif isinstance(exc, InvalidTransition):
        body["current_status"] = exc.current
    return body


def register_error_handlers(app):
    @app.errorhandler(InventoryError)
    @app.errorhandler(ValidationError)
    @app.errorhandler(ConflictError)
    def handle_domain_error(exc):
        status = status_for(exc)
        if status >= 500:
            current_app.logger.error("Domain error on request: %s", exc)
        return jsonify(error_body(exc)), status

    @app.errorhandler(404)
    def handle_not_found(exc):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(exc):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def handle_internal_error(exc):
        return jsonify({"error": "Internal server error"}), 500
