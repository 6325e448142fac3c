from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import date


class YoyGrowth(BaseModel):
    sales: float = 0.0
    transactions: float = 0.0
    avg_transaction: float = 0.0
    labor: float = 0.0


class PreviousYearTotals(BaseModel):
    total_sales: float = 0.0
    total_transactions: int = 0
    avg_transaction_value: float = 0.0
    labor_cost_percent: float = 0.0


class DashboardSummary(BaseModel):
    total_sales: float
    total_transactions: int
    avg_transaction_value: float
    total_labor_cost: float
    labor_cost_percent: float
    store_count: int
    total_labor_hours: float
    sales_per_labor_hour: float
    transactions_per_labor_hour: float
    effective_hourly_wage: float
    yoy_growth: YoyGrowth
    previous_year: Optional[PreviousYearTotals] = None


class PreviousYearPoint(BaseModel):
    sales: float
    transactions: int
    avg_transaction: float
    labor_percent: float


class TimeSeriesPoint(BaseModel):
    period: str  # week_iso
    week_ending: date
    sales: float
    transactions: int
    avg_transaction: float
    labor_percent: float
    labor_cost: Optional[float] = None
    labor_hours: Optional[float] = None
    previous_year: Optional[PreviousYearPoint] = None

    class Config:
        frozen = True


class StorePerformance(BaseModel):
    store_code: str
    store_name: str
    total_sales: float
    total_transactions: int
    avg_transaction_value: float
    labor_cost_percent: float
    sales_rank: int
    performance_score: float
    yoy_growth: float


class DateRangeResponse(BaseModel):
    start: date
    end: date


class DashboardOverview(BaseModel):
    summary: DashboardSummary
    time_series: List[TimeSeriesPoint]
    store_performance: List[StorePerformance]
    date_range: DateRangeResponse


StoreTimeSeries = Dict[str, List[TimeSeriesPoint]]
