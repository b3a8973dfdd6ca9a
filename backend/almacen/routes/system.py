# backend/almacen/routes/system.py
"""
System health endpoint.

Reports storage backend status and collection sizes for deployment debugging.
"""

import time
from flask import Blueprint, current_app, jsonify

from ..decorators import get_state
from ..storage import SqlStorage
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api/system")


def check_storage_health() -> dict:
    """
    Check the storage backend with a read of the stored collections.

    Returns dict with status and details.
    """
    storage = get_state().storage
    start_time = time.time()
    try:
        if isinstance(storage, SqlStorage):
            details = {row["kind"]: row["updated_at"] for row in storage.describe()}
            backend = "sql"
        else:
            details = {}
            backend = "memory"
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "backend": backend,
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Storage health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Storage error",
        }


@system_bp.get("/health")
def health():
    state = get_state()
    storage = check_storage_health()
    overall = "healthy" if storage["status"] == "healthy" else "unhealthy"
    body = {
        "status": overall,
        "timestamp": to_utc_z(utcnow()),
        "storage": storage,
        "collections": {
            "products": len(state.products),
            "movements": len(state.movements),
            "incidents": len(state.incidents),
            "app_users": len(state.app_users),
        },
    }
    return jsonify(body), 200 if overall == "healthy" else 503
