from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.api.deps import get_current_principal, get_date_range, get_store_filter
from app.schemas.dashboard import DashboardOverview, DashboardSummary, StorePerformance, StoreTimeSeries, TimeSeriesPoint
from app.services.access_scope import Principal, effective_stores
from app.services.aggregation import AggregationEngine, DateRange

router = APIRouter()


@router.get("/overview", response_model=DashboardOverview)
async def get_overview(
    date_range: DateRange = Depends(get_date_range),
    stores: Optional[List[str]] = Depends(get_store_filter),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Summary, weekly time series and store ranking in one response."""
    return AggregationEngine(db).overview(date_range, effective_stores(principal, stores))


@router.get("/summary", response_model=DashboardSummary)
async def get_summary(
    date_range: DateRange = Depends(get_date_range),
    stores: Optional[List[str]] = Depends(get_store_filter),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return AggregationEngine(db).summary(date_range, effective_stores(principal, stores))


@router.get("/time-series", response_model=List[TimeSeriesPoint])
async def get_time_series(
    date_range: DateRange = Depends(get_date_range),
    stores: Optional[List[str]] = Depends(get_store_filter),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return AggregationEngine(db).time_series(date_range, effective_stores(principal, stores))


@router.get("/stores-time-series", response_model=StoreTimeSeries)
async def get_stores_time_series(
    date_range: DateRange = Depends(get_date_range),
    stores: Optional[List[str]] = Depends(get_store_filter),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Weekly series per store, keyed by store code."""
    return AggregationEngine(db).time_series_by_store(date_range, effective_stores(principal, stores))


@router.get("/store-performance", response_model=List[StorePerformance])
async def get_store_performance(
    date_range: DateRange = Depends(get_date_range),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Stores ranked by total sales with a 0-100 performance score."""
    return AggregationEngine(db).store_performance(date_range, effective_stores(principal))
