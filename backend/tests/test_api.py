"""
API tests: routing, authentication, error mapping and store scoping.
"""
from io import BytesIO
import json

import pandas as pd
import pytest
from sqlalchemy.exc import OperationalError

from app.services.entry_store import EntryStore

ENTRY = {
    "store_code": "anna",
    "fiscal_year": 2025,
    "week_number": 1,
    "total_sales": 15000,
    "variable_hours": 120.5,
    "num_transactions": 350,
    "average_wage": 15.50,
}

YEAR_2025 = {"start_date": "2025-01-01", "end_date": "2025-12-31"}


def post_entry(client, headers, **overrides):
    payload = dict(ENTRY)
    payload.update(overrides)
    return client.post("/api/entries", json=payload, headers=headers)


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_requires_token(client):
    assert client.get("/api/entries/recent").status_code == 401
    bad = {"Authorization": "Bearer not-a-token"}
    assert client.get("/api/entries/recent", headers=bad).status_code == 401


def test_unknown_role_rejected(client, auth_headers):
    response = client.get("/api/stores", headers=auth_headers(9, "janitor"))
    assert response.status_code == 401


def test_create_entry(client, executive_headers):
    response = post_entry(client, executive_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["week_iso"] == "2025-01"
    assert body["week_ending"] == "2025-01-07"
    assert body["variable_labor_cost"] == pytest.approx(1867.75)
    assert body["avg_transaction_value"] == pytest.approx(42.857, abs=1e-3)
    assert body["total_labor_percent"] == pytest.approx(12.45, abs=1e-2)


def test_duplicate_entry_conflict(client, executive_headers):
    assert post_entry(client, executive_headers).status_code == 201

    response = post_entry(client, executive_headers)

    assert response.status_code == 409
    assert response.json()["code"] == "duplicate_entry"


def test_validation_error(client, executive_headers):
    response = post_entry(client, executive_headers, week_number=60)
    assert response.status_code == 422


def test_unknown_store_not_found(client, executive_headers):
    response = post_entry(client, executive_headers, store_code="nowhere")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_manager_forbidden_on_unassigned_store(client, manager_headers):
    response = post_entry(client, manager_headers, store_code="C")

    assert response.status_code == 403
    assert response.json() == {
        "error": "Forbidden",
        "code": "forbidden",
        "message": "Access denied to store C",
        "details": {"store_code": "C"},
    }
    assert post_entry(client, manager_headers, store_code="A").status_code == 201


def test_get_update_delete(client, executive_headers):
    entry_id = post_entry(client, executive_headers).json()["id"]

    assert client.get(f"/api/entries/{entry_id}", headers=executive_headers).status_code == 200

    response = client.patch(
        f"/api/entries/{entry_id}",
        json={"total_sales": 30000},
        headers=executive_headers,
    )
    assert response.status_code == 200
    assert response.json()["total_labor_percent"] == pytest.approx(1867.75 / 300)

    response = client.patch(f"/api/entries/{entry_id}", json={"week_number": 2}, headers=executive_headers)
    assert response.status_code == 422

    assert client.delete(f"/api/entries/{entry_id}", headers=executive_headers).status_code == 204
    assert client.get(f"/api/entries/{entry_id}", headers=executive_headers).status_code == 404


def test_last_week(client, executive_headers):
    assert client.get("/api/entries/last-week/anna", headers=executive_headers).json() is None

    post_entry(client, executive_headers, total_fixed_cost=420)
    body = client.get("/api/entries/last-week/anna", headers=executive_headers).json()

    assert body["total_fixed_cost"] == 420
    assert body["next_week_number"] == 2
    assert body["next_week_ending"] == "2025-01-14"


def test_recent_entries_scoped_for_manager(client, executive_headers, manager_headers):
    for code in ("A", "B", "C"):
        post_entry(client, executive_headers, store_code=code)

    body = client.get("/api/entries/recent", headers=manager_headers).json()

    assert body["total_count"] == 2
    assert body["showing"] == 2
    assert {e["store_code"] for e in body["entries"]} == {"A", "B"}


def test_json_import(client, executive_headers):
    rows = [
        {"storeCode": "anna", "fiscalYear": "2025", "weekNumber": "1", "totalSales": "100",
         "variableHours": "10", "numTransactions": "5", "averageWage": "12"},
        {"storeCode": "anna", "fiscalYear": "2025", "weekNumber": "2", "totalSales": "oops",
         "variableHours": "10", "numTransactions": "5", "averageWage": "12"},
    ]

    body = client.post("/api/entries/import", json={"rows": rows}, headers=executive_headers).json()

    assert body["successful_count"] == 1
    assert body["failed_count"] == 1
    assert body["errors"][0]["row"] == 2


def test_file_import_csv(client, executive_headers):
    content = (
        "storeCode,fiscalYear,weekNumber,totalSales,variableHours,numTransactions,averageWage,totalFixedCost,notes\n"
        "anna,2025,1,15000.00,120.5,350,15.50,,\"Sample, entry\"\n"
        "anna,2025,2,16000.00,118,360,15.50,,\n"
        "anna,2025,3,,118,360,15.50,,\n"
    )
    response = client.post(
        "/api/data/import/entries",
        files={"file": ("entries.csv", content.encode(), "text/csv")},
        headers=executive_headers,
    )

    body = response.json()
    assert response.status_code == 200
    assert body["successful_count"] == 2
    assert body["errors"] == [{"row": 3, "message": "Missing required fields: totalSales"}]


def test_file_import_rejects_unknown_type(client, executive_headers):
    response = client.post(
        "/api/data/import/entries",
        files={"file": ("entries.txt", b"hello", "text/plain")},
        headers=executive_headers,
    )
    assert response.status_code == 400


def test_dashboard_scoped_for_manager(client, executive_headers, manager_headers):
    post_entry(client, executive_headers, store_code="A", total_sales=1000)
    post_entry(client, executive_headers, store_code="C", total_sales=5000)

    params = dict(YEAR_2025, stores="A,C")
    summary = client.get("/api/dashboard/summary", params=params, headers=manager_headers).json()
    assert summary["total_sales"] == 1000
    assert summary["store_count"] == 1

    summary = client.get("/api/dashboard/summary", params=params, headers=executive_headers).json()
    assert summary["total_sales"] == 6000

    ranking = client.get("/api/dashboard/store-performance", params=YEAR_2025, headers=manager_headers).json()
    assert [p["store_code"] for p in ranking] == ["A"]


def test_dashboard_time_series_endpoints(client, executive_headers):
    post_entry(client, executive_headers, week_number=1)
    post_entry(client, executive_headers, week_number=3)

    series = client.get("/api/dashboard/time-series", params=YEAR_2025, headers=executive_headers).json()
    assert [p["period"] for p in series] == ["2025-01", "2025-03"]

    by_store = client.get("/api/dashboard/stores-time-series", params=YEAR_2025, headers=executive_headers).json()
    assert list(by_store) == ["anna"]

    overview = client.get("/api/dashboard/overview", params=YEAR_2025, headers=executive_headers).json()
    assert overview["date_range"] == {"start": "2025-01-01", "end": "2025-12-31"}
    assert len(overview["time_series"]) == 2


def test_dashboard_inverted_range(client, executive_headers):
    params = {"start_date": "2025-06-01", "end_date": "2025-01-01"}
    response = client.get("/api/dashboard/summary", params=params, headers=executive_headers)
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_stores_list(client, executive_headers, manager_headers):
    codes = [s["code"] for s in client.get("/api/stores", headers=executive_headers).json()]
    assert sorted(codes) == ["A", "B", "C", "anna"]

    renoja = client.get("/api/stores", params={"brand": "renoja"}, headers=executive_headers).json()
    assert [s["code"] for s in renoja] == ["C"]

    scoped = client.get("/api/stores", headers=manager_headers).json()
    assert sorted(s["code"] for s in scoped) == ["A", "B"]


def test_export_detailed_csv_escapes_fields(client, executive_headers):
    post_entry(client, executive_headers, notes='Closed early, "storm" day')

    response = client.get(
        "/api/data/export/dashboard",
        params=dict(YEAR_2025, view="detailed", format="csv"),
        headers=executive_headers,
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    df = pd.read_csv(BytesIO(response.content))
    assert df.loc[0, "Notes"] == 'Closed early, "storm" day'
    assert df.loc[0, "Store Name"] == "Anna Maria Island"


def test_export_summary_xlsx(client, executive_headers):
    post_entry(client, executive_headers)

    response = client.get(
        "/api/data/export/dashboard",
        params=dict(YEAR_2025, view="summary", format="xlsx"),
        headers=executive_headers,
    )

    assert response.status_code == 200
    df = pd.read_excel(BytesIO(response.content))
    assert list(df.columns) == ["Metric", "Value", "Previous Year", "YoY Change %"]
    assert df.loc[0, "Metric"] == "Total Sales"
    assert df.loc[0, "Value"] == 15000


def test_export_template(client, executive_headers):
    response = client.get("/api/data/export/template", headers=executive_headers)

    lines = response.text.strip().splitlines()
    assert lines[0] == "storeCode,fiscalYear,weekNumber,totalSales,variableHours,numTransactions,averageWage,totalFixedCost,notes"
    assert lines[1].startswith("anna,2025,1,15000.00")


def test_storage_error_maps_to_503(client, executive_headers, monkeypatch):
    def broken(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    monkeypatch.setattr(EntryStore, "recent_entries", broken)

    response = client.get("/api/entries/recent", headers=executive_headers)
    assert response.status_code == 503
    assert response.json()["code"] == "storage_error"


def test_non_finite_and_overflowing_values_rejected(client, executive_headers):
    payload = dict(ENTRY, total_sales=float("inf"))
    response = client.post(
        "/api/entries",
        content=json.dumps(payload),
        headers=dict(executive_headers, **{"Content-Type": "application/json"}),
    )
    assert response.status_code == 422

    response = post_entry(client, executive_headers, variable_hours=1e200, average_wage=1e200)
    assert response.status_code == 422

    assert client.get("/api/entries/recent", headers=executive_headers).json()["total_count"] == 0
    summary = client.get("/api/dashboard/summary", params=YEAR_2025, headers=executive_headers).json()
    assert summary["total_sales"] == 0


def test_update_rejects_non_finite_values(client, executive_headers):
    entry_id = post_entry(client, executive_headers).json()["id"]

    response = client.patch(
        f"/api/entries/{entry_id}",
        content=json.dumps({"average_wage": float("inf")}),
        headers=dict(executive_headers, **{"Content-Type": "application/json"}),
    )

    assert response.status_code == 422
    assert client.get(f"/api/entries/{entry_id}", headers=executive_headers).json()["average_wage"] == 15.5
