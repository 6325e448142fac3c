from app.schemas.store import StoreResponse
from app.schemas.weekly_entry import (
    WeeklyEntryCreate, WeeklyEntryUpdate, WeeklyEntryResponse, RecentEntriesResponse,
    LastWeekData, ImportRequest, ImportRowError, ImportResult,
)
from app.schemas.dashboard import (
    DashboardSummary, YoyGrowth, PreviousYearTotals, TimeSeriesPoint, PreviousYearPoint,
    StorePerformance, DashboardOverview, DateRangeResponse,
)

__all__ = [
    "StoreResponse",
    "WeeklyEntryCreate", "WeeklyEntryUpdate", "WeeklyEntryResponse", "RecentEntriesResponse",
    "LastWeekData", "ImportRequest", "ImportRowError", "ImportResult",
    "DashboardSummary", "YoyGrowth", "PreviousYearTotals", "TimeSeriesPoint", "PreviousYearPoint",
    "StorePerformance", "DashboardOverview", "DateRangeResponse",
]
