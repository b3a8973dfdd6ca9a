from flask import Blueprint, Response, jsonify, request

from almacen.decorators import require_auth, require_permission, get_state
from almacen.services import reporting_service
from almacen.time_utils import utcnow


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _csv_response(body: str, name: str) -> Response:
    filename = f"{name}_{utcnow().strftime('%Y-%m-%d')}.csv"
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@reports_bp.get("/summary")
@require_auth
@require_permission("VIEW_REPORTS")
def summary_report():
    return jsonify(reporting_service.inventory_summary(get_state())), 200


@reports_bp.get("/categories")
@require_auth
@require_permission("VIEW_REPORTS")
def categories_report():
    return jsonify({"items": reporting_service.category_breakdown(get_state())}), 200


@reports_bp.get("/low-stock")
@require_auth
@require_permission("VIEW_REPORTS")
def low_stock_report():
    items = reporting_service.low_stock(get_state())
    return jsonify({"items": [p.to_dict() for p in items], "count": len(items)}), 200


@reports_bp.get("/top-products")
@require_auth
@require_permission("VIEW_REPORTS")
def top_products_report():
    limit = request.args.get("limit", default=reporting_service.TOP_PRODUCTS_LIMIT, type=int)
    if limit < 1:
        return jsonify({"error": "limit must be >= 1"}), 400

    try:
        items = reporting_service.top_products(
            get_state(),
            start=request.args.get("start"),
            end=request.args.get("end"),
            limit=limit,
        )
        return jsonify({"items": items}), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/monthly")
@require_auth
@require_permission("VIEW_REPORTS")
def monthly_report():
    try:
        items = reporting_service.monthly_movements(
            get_state(),
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return jsonify({"items": items}), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/export/inventory.csv")
@require_auth
@require_permission("VIEW_REPORTS")
def export_inventory():
    return _csv_response(reporting_service.inventory_csv(get_state()), "inventario")


@reports_bp.get("/export/movements.csv")
@require_auth
@require_permission("VIEW_REPORTS")
def export_movements():
    return _csv_response(
        reporting_service.movements_csv(get_state(), status=request.args.get("status")),
        "movimientos",
    )
