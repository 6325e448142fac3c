"""
Metrics Calculator

Derives labor and sales KPIs for a weekly entry from its raw inputs.
All functions are pure; guards keep pathological inputs (zero sales with
nonzero cost, near-zero hours) from producing values that overflow the
numeric columns downstream.
"""

from typing import Optional
from dataclasses import dataclass, asdict
import math

from app.core.exceptions import ValidationError

PERCENT_LIMIT = 9999.9999
SALES_PER_HOUR_LIMIT = 9999999999999.99
TRANSACTIONS_PER_HOUR_LIMIT = 9999999999.99
MIN_LABOR_HOURS = 0.01

# Upper bounds for raw inputs
MAX_AMOUNT = 9999999999.99
MAX_HOURS = 999999.99
MAX_WAGE = 99999.99
MAX_TRANSACTIONS = 2147483647


@dataclass(frozen=True)
class EntryMetrics:
    """Derived fields persisted alongside a weekly entry."""
    variable_labor_cost: float
    total_labor_cost: float
    total_labor_percent: float
    variable_labor_percent: float
    fixed_labor_percent: float
    avg_transaction_value: float
    sales_per_labor_hour: float
    transactions_per_labor_hour: float

    def to_dict(self) -> dict:
        return asdict(self)


def clamp(value: float, limit: float) -> float:
    """Clamp ``value`` to the range [-limit, limit]."""
    return max(-limit, min(value, limit))


def safe_percent(part: float, base: float) -> float:
    """part / base * 100, or 0 when the base is not positive."""
    if base is None or base <= 0:
        return 0.0
    return clamp(part / base * 100, PERCENT_LIMIT)


def safe_average(total: float, count: float) -> float:
    if not count or count <= 0:
        return 0.0
    return total / count


def per_labor_hour(value: float, hours: float, limit: float) -> float:
    """
    Ratio of ``value`` to labor hours.

    Zero hours yield 0. Positive hours are floored at MIN_LABOR_HOURS so a
    fractional report like 0.001 hours cannot blow the ratio up.
    """
    if not hours or hours <= 0:
        return 0.0
    return clamp(value / max(hours, MIN_LABOR_HOURS), limit)


def yoy_delta(current: Optional[float], prior: Optional[float]) -> float:
    """Year-over-year change in percent; 0 when the prior value is absent or zero."""
    if current is None or prior is None or prior <= 0:
        return 0.0
    return clamp((current - prior) / prior * 100, PERCENT_LIMIT)


def _require_finite(values: dict) -> None:
    bad = {name: "not a finite number" for name, value in values.items() if not math.isfinite(value)}
    if bad:
        raise ValidationError(f"Values out of range: {', '.join(bad)}", details=bad)


def calculate_entry_metrics(
    total_sales: float,
    num_transactions: int,
    variable_hours: float,
    average_wage: float,
    total_fixed_cost: Optional[float] = 0.0,
) -> EntryMetrics:
    """
    Compute every derived field of a weekly entry.

    Raises ValidationError when an input or a computed cost is not finite.
    """
    fixed_cost = total_fixed_cost or 0.0
    inputs = {
        "total_sales": total_sales,
        "num_transactions": num_transactions,
        "variable_hours": variable_hours,
        "average_wage": average_wage,
        "total_fixed_cost": fixed_cost,
    }
    _require_finite(inputs)

    variable_labor_cost = variable_hours * average_wage
    total_labor_cost = variable_labor_cost + fixed_cost
    _require_finite({"variable_labor_cost": variable_labor_cost, "total_labor_cost": total_labor_cost})

    return EntryMetrics(
        variable_labor_cost=variable_labor_cost,
        total_labor_cost=total_labor_cost,
        total_labor_percent=safe_percent(total_labor_cost, total_sales),
        variable_labor_percent=safe_percent(variable_labor_cost, total_sales),
        fixed_labor_percent=safe_percent(fixed_cost, total_sales),
        avg_transaction_value=safe_average(total_sales, num_transactions),
        sales_per_labor_hour=per_labor_hour(total_sales, variable_hours, SALES_PER_HOUR_LIMIT),
        transactions_per_labor_hour=per_labor_hour(num_transactions, variable_hours, TRANSACTIONS_PER_HOUR_LIMIT),
    )
