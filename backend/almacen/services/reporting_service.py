# Overview: Service-layer operations for reporting; read-only views over ledger and workflow state.

from __future__ import annotations

import csv
import io
from collections import defaultdict
from datetime import datetime

from ..models import Product
from ..state import InventoryState
from ..time_utils import parse_iso_datetime, utcnow, to_utc_z
from . import incident_service, movement_service


TOP_PRODUCTS_LIMIT = 10

INVENTORY_CSV_COLUMNS = ("id", "name", "category", "quantity", "min_stock", "price", "location", "stock_value")
MOVEMENTS_CSV_COLUMNS = (
    "id", "date", "product_id", "product_name", "type", "quantity",
    "status", "reason", "requested_by", "reviewed_by", "reviewed_at",
)


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError as exc:
        raise ReportError(f"Invalid date: {exc}") from exc
    if start_dt and end_dt and start_dt > end_dt:
        raise ReportError("start must be before end")
    return start_dt, end_dt


def _approved(state: InventoryState, start: datetime | None = None, end: datetime | None = None):
    items = [m for m in state.movements if m.status == "aprobado"]
    if start:
        items = [m for m in items if m.date >= start]
    if end:
        items = [m for m in items if m.date <= end]
    return items


def inventory_summary(state: InventoryState) -> dict:
    products = state.products
    today = utcnow().date()
    movement_counts = movement_service.movement_counts(state)
    incident_counts = incident_service.incident_counts(state)

    return {
        "total_products": len(products),
        "total_units": sum(p.quantity for p in products),
        "total_value": round(sum(p.stock_value for p in products), 2),
        "low_stock_count": sum(1 for p in products if p.is_low_stock),
        "movements_today": sum(1 for m in state.movements if m.date.date() == today),
        "pending_movements": movement_counts["pendiente"],
        "pending_incidents": incident_counts["pendiente"],
        "currency": state.config.currency,
        "generated_at": to_utc_z(utcnow()),
    }


def category_breakdown(state: InventoryState) -> list[dict]:
    buckets: dict[str, dict] = defaultdict(lambda: {"products": 0, "units": 0, "value": 0.0})
    for p in state.products:
        bucket = buckets[p.category or "Sin categoría"]
        bucket["products"] += 1
        bucket["units"] += p.quantity
        bucket["value"] += p.stock_value

    return [
        {"category": name, "products": b["products"], "units": b["units"], "value": round(b["value"], 2)}
        for name, b in sorted(buckets.items())
    ]


def low_stock(state: InventoryState) -> list[Product]:
    """Products at or below their min_stock, emptiest shelves first."""
    items = [p for p in state.products if p.is_low_stock]
    return sorted(items, key=lambda p: (p.quantity - p.min_stock, p.name.lower()))


def top_products(
    state: InventoryState,
    *,
    start: str | None = None,
    end: str | None = None,
    limit: int = TOP_PRODUCTS_LIMIT,
) -> list[dict]:
    """Products ranked by units moved in approved movements (both directions)."""
    start_dt, end_dt = _parse_range(start, end)

    totals: dict[str, dict] = {}
    for m in _approved(state, start_dt, end_dt):
        row = totals.setdefault(
            m.product_id,
            {"product_id": m.product_id, "product_name": m.product_name, "entradas": 0, "salidas": 0},
        )
        if m.type == "entrada":
            row["entradas"] += m.quantity
        else:
            row["salidas"] += m.quantity

    for row in totals.values():
        row["total"] = row["entradas"] + row["salidas"]

    ranked = sorted(totals.values(), key=lambda r: (-r["total"], r["product_name"].lower()))
    return ranked[:limit]


def monthly_movements(state: InventoryState, *, start: str | None = None, end: str | None = None) -> list[dict]:
    """Approved entradas/salidas per calendar month (YYYY-MM), oldest first."""
    start_dt, end_dt = _parse_range(start, end)

    months: dict[str, dict] = {}
    for m in _approved(state, start_dt, end_dt):
        key = m.date.strftime("%Y-%m")
        row = months.setdefault(key, {"month": key, "entradas": 0, "salidas": 0, "movements": 0})
        row["movements"] += 1
        if m.type == "entrada":
            row["entradas"] += m.quantity
        else:
            row["salidas"] += m.quantity

    return [months[k] for k in sorted(months)]


def _to_csv(columns: tuple[str, ...], rows) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=columns, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buf.getvalue()


def inventory_csv(state: InventoryState) -> str:
    rows = []
    for p in sorted(state.products, key=lambda p: (p.name.lower(), p.id)):
        row = p.to_dict()
        row["stock_value"] = p.stock_value
        rows.append(row)
    return _to_csv(INVENTORY_CSV_COLUMNS, rows)


def movements_csv(state: InventoryState, *, status: str | None = None) -> str:
    movements = movement_service.list_movements(state, status=status)
    return _to_csv(MOVEMENTS_CSV_COLUMNS, (m.to_dict() for m in movements))
