"""Reporting tests: summary, breakdowns, rankings and CSV exports."""

import csv
import io
from datetime import datetime

import pytest

from almacen.services import movement_service, reporting_service


def _approved(state, operator, manager, product_id, type, quantity):
    movement = movement_service.create_movement(
        state, product_id=product_id, type=type, quantity=quantity, actor=operator
    )
    return movement_service.approve_movement(state, movement.id, reviewer=manager)


def test_summary_on_seed_data(state):
    summary = reporting_service.inventory_summary(state)

    assert summary["total_products"] == 8
    assert summary["total_units"] == 15 + 45 + 3 + 8 + 12 + 6 + 25 + 4
    assert summary["low_stock_count"] == 2
    assert summary["pending_movements"] == 0
    assert summary["currency"] == "USD"
    expected_value = round(sum(p.quantity * p.price for p in state.products), 2)
    assert summary["total_value"] == pytest.approx(expected_value, abs=0.05)


def test_category_breakdown(state):
    rows = {row["category"]: row for row in reporting_service.category_breakdown(state)}

    assert set(rows) == {"Accesorios", "Electrónica", "Mobiliario"}
    assert rows["Mobiliario"]["products"] == 2
    assert rows["Mobiliario"]["units"] == 16


def test_low_stock_orders_emptiest_first(state):
    assert [p.id for p in reporting_service.low_stock(state)] == ["3", "8"]


def test_top_products_counts_only_approved(state, operator, manager):
    _approved(state, operator, manager, "2", "salida", 10)
    _approved(state, operator, manager, "2", "entrada", 5)
    _approved(state, operator, manager, "7", "salida", 3)
    movement_service.create_movement(state, product_id="1", type="entrada", quantity=100, actor=operator)

    top = reporting_service.top_products(state)

    assert [row["product_id"] for row in top] == ["2", "7"]
    assert top[0] == {
        "product_id": "2",
        "product_name": "Mouse Logitech MX Master",
        "entradas": 5,
        "salidas": 10,
        "total": 15,
    }


def test_monthly_movements_groups_by_month(state, operator, manager):
    january = _approved(state, operator, manager, "5", "entrada", 2)
    january.date = datetime(2026, 1, 15, 10, 0)
    february = _approved(state, operator, manager, "5", "salida", 1)
    february.date = datetime(2026, 2, 3, 9, 30)

    rows = reporting_service.monthly_movements(state)

    assert rows == [
        {"month": "2026-01", "entradas": 2, "salidas": 0, "movements": 1},
        {"month": "2026-02", "entradas": 0, "salidas": 1, "movements": 1},
    ]
    assert reporting_service.monthly_movements(state, start="2026-02-01T00:00:00Z")[0]["month"] == "2026-02"


def test_invalid_range(state):
    with pytest.raises(reporting_service.ReportError):
        reporting_service.monthly_movements(state, start="not-a-date")
    with pytest.raises(reporting_service.ReportError):
        reporting_service.top_products(state, start="2026-03-01", end="2026-01-01")


def test_inventory_csv(state):
    rows = list(csv.DictReader(io.StringIO(reporting_service.inventory_csv(state))))

    assert len(rows) == 8
    assert set(rows[0]) == set(reporting_service.INVENTORY_CSV_COLUMNS)
    by_id = {row["id"]: row for row in rows}
    assert by_id["3"]["quantity"] == "3"
    assert by_id["4"]["name"] == 'Monitor Dell 27"'


def test_movements_csv(state, operator):
    movement_service.create_movement(state, product_id="1", type="entrada", quantity=2, reason="a, b", actor=operator)

    rows = list(csv.DictReader(io.StringIO(reporting_service.movements_csv(state))))

    assert len(rows) == 1
    assert rows[0]["reason"] == "a, b"
    assert rows[0]["status"] == "pendiente"


class TestReportsApi:
    def test_auditor_can_read_reports(self, client, login_as):
        headers = login_as("auditor")

        summary = client.get("/api/reports/summary", headers=headers)
        assert summary.status_code == 200
        assert summary.get_json()["total_products"] == 8

        export = client.get("/api/reports/export/inventory.csv", headers=headers)
        assert export.status_code == 200
        assert export.mimetype == "text/csv"
        assert "attachment" in export.headers["Content-Disposition"]
        assert export.get_data(as_text=True).startswith("id,name,category")

    def test_operator_denied(self, client, login_as):
        headers = login_as("operator")
        resp = client.get("/api/reports/low-stock", headers=headers)
        assert resp.status_code == 403
        assert resp.get_json()["required_permission"] == "VIEW_REPORTS"

    def test_bad_range_is_400(self, client, login_as):
        headers = login_as("manager")
        resp = client.get("/api/reports/monthly?start=yesterday", headers=headers)
        assert resp.status_code == 400
