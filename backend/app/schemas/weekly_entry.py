from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import date, datetime

from app.services.fiscal_period import MIN_FISCAL_YEAR, MAX_FISCAL_YEAR, MIN_WEEK, MAX_WEEK
from app.services.metrics import MAX_AMOUNT, MAX_HOURS, MAX_WAGE, MAX_TRANSACTIONS


class WeeklyEntryCreate(BaseModel):
    store_code: str
    fiscal_year: int = Field(ge=MIN_FISCAL_YEAR, le=MAX_FISCAL_YEAR)
    week_number: int = Field(ge=MIN_WEEK, le=MAX_WEEK)
    total_sales: float = Field(ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    num_transactions: int = Field(ge=0, le=MAX_TRANSACTIONS)
    variable_hours: float = Field(ge=0, le=MAX_HOURS, allow_inf_nan=False)
    average_wage: float = Field(ge=0, le=MAX_WAGE, allow_inf_nan=False)
    total_fixed_cost: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)  # None = carry forward
    notes: Optional[str] = None

    @field_validator("store_code")
    @classmethod
    def validate_store_code(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Store code is required")
        return v


class WeeklyEntryUpdate(BaseModel):
    """Raw fields only; store and fiscal week cannot change after creation."""
    total_sales: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    num_transactions: Optional[int] = Field(default=None, ge=0, le=MAX_TRANSACTIONS)
    variable_hours: Optional[float] = Field(default=None, ge=0, le=MAX_HOURS, allow_inf_nan=False)
    average_wage: Optional[float] = Field(default=None, ge=0, le=MAX_WAGE, allow_inf_nan=False)
    total_fixed_cost: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    notes: Optional[str] = None

    class Config:
        extra = "forbid"


class WeeklyEntryResponse(BaseModel):
    id: int
    store_code: str
    fiscal_year: int
    week_number: int
    week_iso: str
    week_ending: date

    total_sales: float
    num_transactions: int
    variable_hours: float
    average_wage: float
    total_fixed_cost: float
    notes: Optional[str] = None

    variable_labor_cost: float
    total_labor_cost: float
    total_labor_percent: float
    variable_labor_percent: float
    fixed_labor_percent: float
    avg_transaction_value: float
    sales_per_labor_hour: float
    transactions_per_labor_hour: float

    total_sales_py: Optional[float] = None
    num_transactions_py: Optional[int] = None
    variable_hours_py: Optional[float] = None
    total_labor_cost_py: Optional[float] = None
    total_labor_percent_py: Optional[float] = None
    delta_sales_percent: Optional[float] = None
    delta_hours_percent: Optional[float] = None
    delta_total_labor_percent: Optional[float] = None

    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RecentEntriesResponse(BaseModel):
    entries: List[WeeklyEntryResponse]
    total_count: int
    showing: int


class LastWeekData(BaseModel):
    """
    Latest entry of a store and the next period to submit.

    next_week_ending is always week_ending + 7 days. After week 53 the next
    period is week 1 of the following year, whose own ending (Jan 7) falls
    earlier than that date.
    """
    store_code: str
    store_name: str
    fiscal_year: int
    week_number: int
    week_ending: date
    average_wage: float
    total_fixed_cost: float
    total_sales: float
    num_transactions: int
    variable_hours: float
    next_fiscal_year: int
    next_week_number: int
    next_week_ending: date


# Batch import
class ImportRequest(BaseModel):
    rows: List[Dict[str, Any]]


class ImportRowError(BaseModel):
    row: int  # 1-based, input order
    message: str


class ImportResult(BaseModel):
    successful_count: int = 0
    failed_count: int = 0
    total_rows: int = 0
    errors: List[ImportRowError] = []
