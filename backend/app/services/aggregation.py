"""
Aggregation Engine

Dashboard read side: summary KPIs, aggregate and per-store time series,
store rankings and detailed listings over a date range and an effective
store set.

Date ranges are mapped to fiscal weeks with
``fiscal_period.approximate_week_iso_range`` (month granularity with a
two-week slop at each edge). Every call recomputes from the stored entries;
a failed query fails the whole call.
"""

from typing import Any, Dict, FrozenSet, List, Optional
from dataclasses import dataclass
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config import get_settings, Settings
from app.core.exceptions import ValidationError
from app.models.store import Store
from app.models.weekly_entry import WeeklyEntry
from app.schemas.dashboard import (
    DashboardSummary, DashboardOverview, DateRangeResponse, PreviousYearPoint,
    PreviousYearTotals, StorePerformance, TimeSeriesPoint, YoyGrowth,
)
from app.services import fiscal_period
from app.services.metrics import (
    SALES_PER_HOUR_LIMIT, TRANSACTIONS_PER_HOUR_LIMIT,
    per_labor_hour, safe_average, safe_percent, yoy_delta,
)

StoreSet = Optional[FrozenSet[str]]


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    @classmethod
    def resolve(
        cls,
        start: Optional[date] = None,
        end: Optional[date] = None,
        default_year: Optional[int] = None,
    ) -> "DateRange":
        """Fill missing bounds with the default report year (or the current year)."""
        year = default_year or date.today().year
        date_range = cls(start or date(year, 1, 1), end or date(year, 12, 31))
        if date_range.start > date_range.end:
            raise ValidationError(
                "start_date must not be after end_date",
                details={"start_date": date_range.start.isoformat(), "end_date": date_range.end.isoformat()},
            )
        return date_range

    def week_iso_bounds(self):
        return fiscal_period.approximate_week_iso_range(self.start, self.end)


@dataclass(frozen=True)
class PerformanceScorePolicy:
    """
    Weights for the 0-100 store performance score.

    Three signals each contribute one of two point values: positive YoY
    growth, sales volume above a threshold, and labor cost ratio below a
    threshold.
    """
    growth_points: float = 40.0
    no_growth_points: float = 20.0
    volume_threshold: float = 100000.0
    volume_points: float = 30.0
    low_volume_points: float = 15.0
    labor_ratio_threshold: float = 0.22
    labor_points: float = 30.0
    high_labor_points: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "PerformanceScorePolicy":
        return cls(
            growth_points=settings.score_growth_points,
            no_growth_points=settings.score_no_growth_points,
            volume_threshold=settings.score_volume_threshold,
            volume_points=settings.score_volume_points,
            low_volume_points=settings.score_low_volume_points,
            labor_ratio_threshold=settings.score_labor_ratio_threshold,
            labor_points=settings.score_labor_points,
            high_labor_points=settings.score_high_labor_points,
        )

    def score(self, yoy_growth: float, total_sales: float, total_labor_cost: float) -> float:
        points = self.growth_points if yoy_growth > 0 else self.no_growth_points
        points += self.volume_points if total_sales > self.volume_threshold else self.low_volume_points

        if total_sales > 0 and total_labor_cost / total_sales < self.labor_ratio_threshold:
            points += self.labor_points
        else:
            points += self.high_labor_points

        return max(0.0, min(points, 100.0))


class AggregationEngine:
    """Builds dashboard aggregates from persisted weekly entries."""

    def __init__(self, db: Session, score_policy: Optional[PerformanceScorePolicy] = None):
        self.db = db
        self.score_policy = score_policy or PerformanceScorePolicy.from_settings(get_settings())

    def _conditions(self, date_range: DateRange, stores: StoreSet) -> list:
        start_iso, end_iso = date_range.week_iso_bounds()
        conditions = [
            WeeklyEntry.week_iso >= start_iso,
            WeeklyEntry.week_iso <= end_iso,
        ]
        if stores is not None:
            conditions.append(WeeklyEntry.store_code.in_(sorted(stores)))
        return conditions

    def summary(self, date_range: DateRange, stores: StoreSet = None) -> DashboardSummary:
        conditions = self._conditions(date_range, stores)

        current = self.db.query(
            func.sum(WeeklyEntry.total_sales),
            func.sum(WeeklyEntry.num_transactions),
            func.sum(WeeklyEntry.total_labor_cost),
            func.sum(WeeklyEntry.variable_hours),
            func.count(func.distinct(WeeklyEntry.store_code)),
        ).filter(*conditions).one()

        prior = self.db.query(
            func.sum(WeeklyEntry.total_sales_py),
            func.sum(WeeklyEntry.num_transactions_py),
            func.sum(WeeklyEntry.total_labor_cost_py),
        ).filter(*conditions, WeeklyEntry.total_sales_py.isnot(None)).one()

        total_sales = float(current[0] or 0)
        total_transactions = int(current[1] or 0)
        total_labor_cost = float(current[2] or 0)
        total_labor_hours = float(current[3] or 0)
        store_count = int(current[4] or 0)

        avg_transaction = safe_average(total_sales, total_transactions)
        labor_percent = safe_percent(total_labor_cost, total_sales)

        prior_sales = float(prior[0] or 0)
        prior_transactions = int(prior[1] or 0)
        prior_labor_cost = float(prior[2] or 0)
        prior_avg_transaction = safe_average(prior_sales, prior_transactions)
        prior_labor_percent = safe_percent(prior_labor_cost, prior_sales)

        yoy_growth = YoyGrowth(
            sales=yoy_delta(total_sales, prior_sales),
            transactions=yoy_delta(total_transactions, prior_transactions),
            avg_transaction=yoy_delta(avg_transaction, prior_avg_transaction) if total_transactions > 0 else 0.0,
            labor=yoy_delta(labor_percent, prior_labor_percent),
        )

        previous_year = None
        if prior_sales > 0:
            previous_year = PreviousYearTotals(
                total_sales=prior_sales,
                total_transactions=prior_transactions,
                avg_transaction_value=prior_avg_transaction,
                labor_cost_percent=prior_labor_percent,
            )

        return DashboardSummary(
            total_sales=total_sales,
            total_transactions=total_transactions,
            avg_transaction_value=avg_transaction,
            total_labor_cost=total_labor_cost,
            labor_cost_percent=labor_percent,
            store_count=store_count,
            total_labor_hours=total_labor_hours,
            sales_per_labor_hour=per_labor_hour(total_sales, total_labor_hours, SALES_PER_HOUR_LIMIT),
            transactions_per_labor_hour=per_labor_hour(total_transactions, total_labor_hours, TRANSACTIONS_PER_HOUR_LIMIT),
            effective_hourly_wage=per_labor_hour(total_labor_cost, total_labor_hours, SALES_PER_HOUR_LIMIT),
            yoy_growth=yoy_growth,
            previous_year=previous_year,
        )

    def time_series(self, date_range: DateRange, stores: StoreSet = None) -> List[TimeSeriesPoint]:
        """One point per fiscal week present in the data, oldest first. Gaps are not filled."""
        rows = self.db.query(
            WeeklyEntry.week_iso,
            WeeklyEntry.fiscal_year,
            WeeklyEntry.week_number,
            func.sum(WeeklyEntry.total_sales).label("sales"),
            func.sum(WeeklyEntry.num_transactions).label("transactions"),
            func.sum(WeeklyEntry.total_labor_cost).label("labor_cost"),
            func.sum(WeeklyEntry.variable_hours).label("labor_hours"),
            func.sum(WeeklyEntry.total_sales_py).label("prev_sales"),
            func.sum(WeeklyEntry.num_transactions_py).label("prev_transactions"),
            func.sum(WeeklyEntry.total_labor_cost_py).label("prev_labor_cost"),
        ).filter(
            *self._conditions(date_range, stores)
        ).group_by(
            WeeklyEntry.week_iso,
            WeeklyEntry.fiscal_year,
            WeeklyEntry.week_number,
        ).order_by(
            WeeklyEntry.fiscal_year,
            WeeklyEntry.week_number,
        ).all()

        series = []
        for row in rows:
            sales = float(row.sales or 0)
            transactions = int(row.transactions or 0)
            labor_cost = float(row.labor_cost or 0)

            previous_year = None
            prev_sales = float(row.prev_sales or 0)
            if prev_sales > 0:
                prev_transactions = int(row.prev_transactions or 0)
                previous_year = PreviousYearPoint(
                    sales=prev_sales,
                    transactions=prev_transactions,
                    avg_transaction=safe_average(prev_sales, prev_transactions),
                    labor_percent=safe_percent(float(row.prev_labor_cost or 0), prev_sales),
                )

            series.append(TimeSeriesPoint(
                period=row.week_iso,
                week_ending=fiscal_period.week_ending_from_year_week(row.fiscal_year, row.week_number),
                sales=sales,
                transactions=transactions,
                avg_transaction=safe_average(sales, transactions),
                labor_percent=safe_percent(labor_cost, sales),
                labor_cost=labor_cost,
                labor_hours=float(row.labor_hours or 0),
                previous_year=previous_year,
            ))
        return series

    def time_series_by_store(
        self,
        date_range: DateRange,
        stores: StoreSet = None,
    ) -> Dict[str, List[TimeSeriesPoint]]:
        """Per-store series keyed by store code, each ordered oldest first."""
        entries = self.db.query(WeeklyEntry).filter(
            *self._conditions(date_range, stores)
        ).order_by(
            WeeklyEntry.store_code,
            WeeklyEntry.fiscal_year,
            WeeklyEntry.week_number,
        ).all()

        by_store: Dict[str, List[TimeSeriesPoint]] = {}
        for entry in entries:
            previous_year = None
            if entry.total_sales_py or entry.num_transactions_py:
                prev_sales = entry.total_sales_py or 0.0
                prev_transactions = entry.num_transactions_py or 0
                previous_year = PreviousYearPoint(
                    sales=prev_sales,
                    transactions=prev_transactions,
                    avg_transaction=safe_average(prev_sales, prev_transactions),
                    labor_percent=entry.total_labor_percent_py or 0.0,
                )

            by_store.setdefault(entry.store_code, []).append(TimeSeriesPoint(
                period=entry.week_iso,
                week_ending=entry.week_ending,
                sales=entry.total_sales,
                transactions=entry.num_transactions,
                avg_transaction=safe_average(entry.total_sales, entry.num_transactions),
                labor_percent=safe_percent(entry.total_labor_cost, entry.total_sales),
                labor_cost=entry.total_labor_cost,
                labor_hours=entry.variable_hours,
                previous_year=previous_year,
            ))
        return by_store

    def store_performance(self, date_range: DateRange, stores: StoreSet = None) -> List[StorePerformance]:
        """
        Rank stores by total sales, highest first.

        Ties keep store-code order and ranks are sequential (1, 2, 3...).
        """
        rows = self.db.query(
            WeeklyEntry.store_code,
            Store.name,
            func.sum(WeeklyEntry.total_sales).label("total_sales"),
            func.sum(WeeklyEntry.num_transactions).label("total_transactions"),
            func.sum(WeeklyEntry.total_labor_cost).label("total_labor_cost"),
            func.sum(WeeklyEntry.total_sales_py).label("total_sales_py"),
        ).outerjoin(
            Store, Store.code == WeeklyEntry.store_code
        ).filter(
            *self._conditions(date_range, stores)
        ).group_by(
            WeeklyEntry.store_code,
            Store.name,
        ).order_by(
            WeeklyEntry.store_code
        ).all()

        ranked = sorted(rows, key=lambda r: -float(r.total_sales or 0))

        performance = []
        for rank, row in enumerate(ranked, start=1):
            total_sales = float(row.total_sales or 0)
            total_transactions = int(row.total_transactions or 0)
            total_labor_cost = float(row.total_labor_cost or 0)
            yoy_growth = yoy_delta(total_sales, row.total_sales_py)

            performance.append(StorePerformance(
                store_code=row.store_code,
                store_name=row.name or row.store_code.upper(),
                total_sales=total_sales,
                total_transactions=total_transactions,
                avg_transaction_value=safe_average(total_sales, total_transactions),
                labor_cost_percent=safe_percent(total_labor_cost, total_sales),
                sales_rank=rank,
                performance_score=self.score_policy.score(yoy_growth, total_sales, total_labor_cost),
                yoy_growth=yoy_growth,
            ))
        return performance

    def detailed_entries(self, date_range: DateRange, stores: StoreSet = None) -> List[Dict[str, Any]]:
        """Flat entry rows with store names, for exports."""
        rows = self.db.query(WeeklyEntry, Store.name).outerjoin(
            Store, Store.code == WeeklyEntry.store_code
        ).filter(
            *self._conditions(date_range, stores)
        ).order_by(
            WeeklyEntry.fiscal_year,
            WeeklyEntry.week_number,
            WeeklyEntry.store_code,
        ).all()

        return [
            {
                "store_code": entry.store_code,
                "store_name": store_name or entry.store_code.upper(),
                "fiscal_year": entry.fiscal_year,
                "week_number": entry.week_number,
                "week_ending": entry.week_ending.isoformat(),
                "total_sales": entry.total_sales,
                "num_transactions": entry.num_transactions,
                "avg_transaction_value": entry.avg_transaction_value,
                "variable_hours": entry.variable_hours,
                "average_wage": entry.average_wage,
                "total_fixed_cost": entry.total_fixed_cost,
                "total_labor_cost": entry.total_labor_cost,
                "total_labor_percent": entry.total_labor_percent,
                "sales_per_labor_hour": entry.sales_per_labor_hour,
                "transactions_per_labor_hour": entry.transactions_per_labor_hour,
                "notes": entry.notes,
            }
            for entry, store_name in rows
        ]

    def overview(self, date_range: DateRange, stores: StoreSet = None) -> DashboardOverview:
        return DashboardOverview(
            summary=self.summary(date_range, stores),
            time_series=self.time_series(date_range, stores),
            store_performance=self.store_performance(date_range, stores),
            date_range=DateRangeResponse(start=date_range.start, end=date_range.end),
        )
