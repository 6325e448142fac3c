"""
Batch Importer

Validates and persists a list of raw rows (already parsed from CSV or
posted as JSON). Each row is independent: it is validated, authorized and
written in its own transaction, and any failure is recorded against its
1-based row number without touching rows before or after it.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging
import math

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import DashboardError, ValidationError
from app.schemas.weekly_entry import WeeklyEntryCreate, ImportResult, ImportRowError
from app.services.access_scope import Principal
from app.services.entry_store import EntryStore
from app.services.fiscal_period import MIN_FISCAL_YEAR, MAX_FISCAL_YEAR, MIN_WEEK, MAX_WEEK

logger = logging.getLogger(__name__)

# (column header, attribute) in template order
IMPORT_COLUMNS: List[Tuple[str, str]] = [
    ("storeCode", "store_code"),
    ("fiscalYear", "fiscal_year"),
    ("weekNumber", "week_number"),
    ("totalSales", "total_sales"),
    ("variableHours", "variable_hours"),
    ("numTransactions", "num_transactions"),
    ("averageWage", "average_wage"),
    ("totalFixedCost", "total_fixed_cost"),
    ("notes", "notes"),
]

REQUIRED_COLUMNS = [
    "storeCode", "fiscalYear", "weekNumber", "totalSales",
    "variableHours", "numTransactions", "averageWage",
]
INTEGER_COLUMNS = {"fiscalYear", "weekNumber", "numTransactions"}
NON_NEGATIVE_COLUMNS = ["totalSales", "variableHours", "numTransactions", "averageWage", "totalFixedCost"]

ATTRIBUTE_BY_COLUMN = dict(IMPORT_COLUMNS)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, float):
        return math.isnan(value)
    return False


def _lookup(row: Mapping[str, Any], column: str) -> Any:
    """Read a column by its template header or its snake_case name."""
    if column in row and not _is_missing(row[column]):
        return row[column]
    return row.get(ATTRIBUTE_BY_COLUMN[column])


def _parse_number(column: str, value: Any) -> float:
    try:
        if isinstance(value, bool):
            raise ValueError
        number = float(str(value).strip().replace(",", ""))
    except (TypeError, ValueError):
        raise ValidationError(
            f"Invalid number for {column}: {value!r}",
            details={column: "not a number"},
        ) from None
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"Invalid number for {column}: {value!r}", details={column: "not a number"})

    if column in INTEGER_COLUMNS:
        if number != int(number):
            raise ValidationError(
                f"Invalid integer for {column}: {value!r}",
                details={column: "not a whole number"},
            )
        return int(number)
    return number


def parse_row(row: Mapping[str, Any]) -> WeeklyEntryCreate:
    """
    Convert one raw row into a validated WeeklyEntryCreate.

    Raises ValidationError naming the missing or invalid fields.
    """
    if not isinstance(row, Mapping):
        raise ValidationError("Row must be a mapping of column names to values")

    missing = [column for column in REQUIRED_COLUMNS if _is_missing(_lookup(row, column))]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={column: "required" for column in missing},
        )

    values: Dict[str, Any] = {"store_code": str(_lookup(row, "storeCode")).strip()}
    for column in REQUIRED_COLUMNS[1:]:
        values[ATTRIBUTE_BY_COLUMN[column]] = _parse_number(column, _lookup(row, column))

    fixed_cost = _lookup(row, "totalFixedCost")
    values["total_fixed_cost"] = None if _is_missing(fixed_cost) else _parse_number("totalFixedCost", fixed_cost)

    notes = _lookup(row, "notes")
    values["notes"] = None if _is_missing(notes) else str(notes).strip()

    if values["fiscal_year"] < MIN_FISCAL_YEAR or values["fiscal_year"] > MAX_FISCAL_YEAR:
        raise ValidationError(
            f"Fiscal year must be between {MIN_FISCAL_YEAR} and {MAX_FISCAL_YEAR}",
            details={"fiscalYear": values["fiscal_year"]},
        )
    if values["week_number"] < MIN_WEEK or values["week_number"] > MAX_WEEK:
        raise ValidationError(
            f"Week number must be between {MIN_WEEK} and {MAX_WEEK}",
            details={"weekNumber": values["week_number"]},
        )

    negative = [
        column for column in NON_NEGATIVE_COLUMNS
        if values[ATTRIBUTE_BY_COLUMN[column]] is not None and values[ATTRIBUTE_BY_COLUMN[column]] < 0
    ]
    if negative:
        raise ValidationError(
            f"Numeric values must not be negative: {', '.join(negative)}",
            details={column: "negative" for column in negative},
        )

    try:
        return WeeklyEntryCreate(**values)
    except SchemaValidationError as exc:
        problems = {".".join(str(p) for p in err["loc"]): err["msg"] for err in exc.errors()}
        raise ValidationError("; ".join(f"{k}: {v}" for k, v in problems.items()), details=problems) from exc


class BatchImporter:
    """Imports weekly entries row by row with isolated failures."""

    def __init__(self, db: Session, entry_store: Optional[EntryStore] = None):
        self.db = db
        self.entry_store = entry_store or EntryStore(db)

    def import_rows(self, rows: List[Mapping[str, Any]], principal: Principal) -> ImportResult:
        result = ImportResult(total_rows=len(rows))

        for row_number, row in enumerate(rows, start=1):
            try:
                data = parse_row(row)
                self.entry_store.create(data, principal)
                result.successful_count += 1
            except DashboardError as exc:
                self._record_failure(result, row_number, exc.message)
            except SQLAlchemyError as exc:
                # EntryStore has already rolled back this row's transaction
                logger.exception(f"Storage error importing row {row_number}")
                self._record_failure(result, row_number, f"Storage error: {exc.__class__.__name__}")

        logger.info(
            f"Imported {result.successful_count} of {result.total_rows} rows "
            f"({result.failed_count} failed) for user {principal.id}"
        )
        return result

    @staticmethod
    def _record_failure(result: ImportResult, row_number: int, message: str) -> None:
        result.failed_count += 1
        result.errors.append(ImportRowError(row=row_number, message=message))
        logger.warning(f"Import row {row_number} rejected: {message}")
