"""
Tests for row-by-row weekly entry import.
"""
import pytest

from app.core.exceptions import ValidationError
from app.models import WeeklyEntry
from app.services.batch_importer import BatchImporter, parse_row


def csv_row(store="anna", year="2025", week="1", **overrides):
    row = {
        "storeCode": store,
        "fiscalYear": year,
        "weekNumber": week,
        "totalSales": "15000.00",
        "variableHours": "120.5",
        "numTransactions": "350",
        "averageWage": "15.50",
        "totalFixedCost": "",
        "notes": "",
    }
    row.update(overrides)
    return row


def test_parse_row_converts_types():
    data = parse_row(csv_row(totalFixedCost="1,250.00", notes=" busy week "))

    assert data.store_code == "anna"
    assert data.fiscal_year == 2025
    assert data.week_number == 1
    assert data.num_transactions == 350
    assert data.total_sales == pytest.approx(15000.0)
    assert data.total_fixed_cost == pytest.approx(1250.0)
    assert data.notes == "busy week"


def test_parse_row_accepts_snake_case_columns():
    data = parse_row({
        "store_code": "A",
        "fiscal_year": 2025,
        "week_number": 4,
        "total_sales": 100,
        "variable_hours": 10,
        "num_transactions": 5,
        "average_wage": 12,
    })
    assert data.store_code == "A"
    assert data.total_fixed_cost is None


def test_parse_row_missing_fields():
    with pytest.raises(ValidationError) as exc_info:
        parse_row(csv_row(totalSales="", averageWage=None))
    assert exc_info.value.message == "Missing required fields: totalSales, averageWage"


def test_parse_row_invalid_number():
    with pytest.raises(ValidationError) as exc_info:
        parse_row(csv_row(variableHours="lots"))
    assert exc_info.value.message.startswith("Invalid number for variableHours")


def test_parse_row_out_of_range():
    with pytest.raises(ValidationError, match="Fiscal year must be between 2020 and 2030"):
        parse_row(csv_row(year="2019"))
    with pytest.raises(ValidationError, match="Week number must be between 1 and 53"):
        parse_row(csv_row(week="54"))


def test_parse_row_negative_values():
    with pytest.raises(ValidationError, match="must not be negative: totalSales"):
        parse_row(csv_row(totalSales="-1"))


def test_malformed_row_is_isolated(db, executive):
    rows = [
        csv_row(week="1"),
        csv_row(week="2"),
        csv_row(week="3", totalSales="abc"),
        csv_row(week="4"),
        csv_row(week="5"),
    ]

    result = BatchImporter(db).import_rows(rows, executive)

    assert result.total_rows == 5
    assert result.successful_count == 4
    assert result.failed_count == 1
    assert len(result.errors) == 1
    assert result.errors[0].row == 3
    assert db.query(WeeklyEntry).count() == 4


def test_duplicates_and_unknown_stores_reported(db, executive):
    rows = [
        csv_row(),
        csv_row(),
        csv_row(store="nowhere"),
    ]

    result = BatchImporter(db).import_rows(rows, executive)

    assert result.successful_count == 1
    assert [e.row for e in result.errors] == [2, 3]
    assert result.errors[0].message == "Entry for this store and week already exists"
    assert "nowhere" in result.errors[1].message


def test_manager_rows_for_other_stores_fail(db, manager):
    rows = [csv_row(store="A"), csv_row(store="C"), csv_row(store="B")]

    result = BatchImporter(db).import_rows(rows, manager)

    assert result.successful_count == 2
    assert result.failed_count == 1
    assert result.errors[0].row == 2
    assert result.errors[0].message == "Access denied to store C"


def test_import_carries_fixed_cost_forward(db, executive):
    rows = [csv_row(week="1", totalFixedCost="300"), csv_row(week="2")]

    BatchImporter(db).import_rows(rows, executive)

    second = db.query(WeeklyEntry).filter(WeeklyEntry.week_number == 2).one()
    assert second.total_fixed_cost == 300


def test_empty_batch(db, executive):
    result = BatchImporter(db).import_rows([], executive)
    assert (result.total_rows, result.successful_count, result.failed_count) == (0, 0, 0)


def test_parse_row_rejects_fractional_integers():
    with pytest.raises(ValidationError, match="Invalid integer for weekNumber"):
        parse_row(csv_row(week="2.9"))
    with pytest.raises(ValidationError, match="Invalid integer for numTransactions"):
        parse_row(csv_row(numTransactions="350.8"))

    assert parse_row(csv_row(week="2.0")).week_number == 2


def test_fractional_week_row_not_imported(db, executive):
    result = BatchImporter(db).import_rows([csv_row(week="2.9", numTransactions="350.8")], executive)

    assert result.successful_count == 0
    assert result.failed_count == 1
    assert result.errors[0].message.startswith("Invalid integer for weekNumber")
    assert db.query(WeeklyEntry).count() == 0


def test_out_of_bounds_amount_rejected():
    with pytest.raises(ValidationError, match="total_sales"):
        parse_row(csv_row(totalSales="1e200"))
