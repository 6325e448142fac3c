"""
Fiscal Period Utilities

Fiscal weeks are fixed 7-day blocks anchored to January 1 of the fiscal
year (not ISO-8601 weeks). Week 1 ends on January 7, week 2 on January 14,
and so on. Stored ``week_iso`` keys and week-ending labels depend on this
exact arithmetic.
"""

from typing import Tuple
from datetime import date, timedelta
import math

from app.core.exceptions import ValidationError

MIN_FISCAL_YEAR = 2020
MAX_FISCAL_YEAR = 2030
MIN_WEEK = 1
MAX_WEEK = 53

# Calendar-month to fiscal-week approximation used by dashboard filters
WEEKS_PER_MONTH = 4.33
RANGE_SLOP_WEEKS = 2


def week_ending_from_year_week(year: int, week: int) -> date:
    """Last day of a fiscal week: Jan 1 plus (week - 1) * 7 + 6 days."""
    return date(year, 1, 1) + timedelta(days=(week - 1) * 7 + 6)


def year_week_from_date(d: date) -> Tuple[int, int]:
    """
    Approximate inverse of ``week_ending_from_year_week``.

    Uses ceil(day_of_year / 7). Week 53 ends in the following January, so
    its week-ending date maps back to week 1 of the next year.
    """
    day_of_year = d.timetuple().tm_yday
    return d.year, math.ceil(day_of_year / 7)


def week_iso(year: int, week: int) -> str:
    """Canonical sort/join key, e.g. ``2025-03``."""
    return f"{year}-{week:02d}"


def next_week_ending(year: int, week: int) -> date:
    return week_ending_from_year_week(year, week) + timedelta(days=7)


def next_year_week(year: int, week: int) -> Tuple[int, int]:
    """Fiscal identity of the week after ``(year, week)``."""
    if week >= MAX_WEEK:
        return year + 1, MIN_WEEK
    return year, week + 1


def validate_year_week(year: int, week: int) -> None:
    """Raise ValidationError when the fiscal identity is out of range."""
    errors = {}
    if year < MIN_FISCAL_YEAR or year > MAX_FISCAL_YEAR:
        errors["fiscal_year"] = f"Fiscal year must be between {MIN_FISCAL_YEAR} and {MAX_FISCAL_YEAR}"
    if week < MIN_WEEK or week > MAX_WEEK:
        errors["week_number"] = f"Week number must be between {MIN_WEEK} and {MAX_WEEK}"
    if errors:
        raise ValidationError("; ".join(errors.values()), details=errors)


def approximate_week_iso_range(start: date, end: date) -> Tuple[str, str]:
    """
    Map a calendar date range to an inclusive ``week_iso`` window.

    Only the months of ``start`` and ``end`` are used. Each month spans about
    4.33 fiscal weeks and both edges are widened by two weeks, so results
    can include up to two weeks outside the requested dates. Week numbers
    are clamped to [1, 53].
    """
    start_week = math.ceil((start.month - 1) * WEEKS_PER_MONTH) + 1 - RANGE_SLOP_WEEKS
    end_week = math.ceil(end.month * WEEKS_PER_MONTH) + RANGE_SLOP_WEEKS

    start_week = max(MIN_WEEK, start_week)
    end_week = min(MAX_WEEK, end_week)

    return week_iso(start.year, start_week), week_iso(end.year, end_week)
