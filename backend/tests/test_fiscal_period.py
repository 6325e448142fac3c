"""
Unit tests for fiscal week arithmetic.
"""
import unittest
from datetime import date

from app.core.exceptions import ValidationError
from app.services import fiscal_period
from app.services.fiscal_period import (
    approximate_week_iso_range,
    next_week_ending,
    next_year_week,
    validate_year_week,
    week_ending_from_year_week,
    week_iso,
    year_week_from_date,
)


class TestFiscalPeriod(unittest.TestCase):
    """Test cases for fiscal period helpers."""

    def test_week_ending_anchored_to_january_first(self):
        self.assertEqual(week_ending_from_year_week(2025, 1), date(2025, 1, 7))
        self.assertEqual(week_ending_from_year_week(2025, 2), date(2025, 1, 14))
        self.assertEqual(week_ending_from_year_week(2024, 10), date(2024, 3, 10))

    def test_week_53_ends_next_january(self):
        self.assertEqual(week_ending_from_year_week(2025, 53), date(2026, 1, 6))

    def test_year_week_round_trip(self):
        for year in (2020, 2024, 2025, 2030):
            for week in range(1, 53):
                with self.subTest(year=year, week=week):
                    self.assertEqual(
                        year_week_from_date(week_ending_from_year_week(year, week)),
                        (year, week),
                    )

    def test_year_week_round_trip_breaks_at_year_boundary(self):
        # Week 53 ends in January of the following year
        self.assertEqual(year_week_from_date(week_ending_from_year_week(2025, 53)), (2026, 1))

    def test_week_iso_is_zero_padded(self):
        self.assertEqual(week_iso(2025, 3), "2025-03")
        self.assertEqual(week_iso(2025, 42), "2025-42")

    def test_week_iso_sorts_chronologically(self):
        keys = [week_iso(2024, 52), week_iso(2025, 1), week_iso(2025, 10), week_iso(2025, 9)]
        self.assertEqual(sorted(keys), ["2024-52", "2025-01", "2025-09", "2025-10"])

    def test_next_week(self):
        self.assertEqual(next_year_week(2025, 1), (2025, 2))
        self.assertEqual(next_year_week(2025, 52), (2025, 53))
        self.assertEqual(next_year_week(2025, 53), (2026, 1))
        self.assertEqual(next_week_ending(2025, 1), date(2025, 1, 14))

    def test_validate_year_week(self):
        validate_year_week(2025, 1)
        validate_year_week(2030, 53)

        with self.assertRaises(ValidationError) as ctx:
            validate_year_week(2019, 54)
        self.assertIn("fiscal_year", ctx.exception.details)
        self.assertIn("week_number", ctx.exception.details)

    def test_range_full_year(self):
        self.assertEqual(
            approximate_week_iso_range(date(2025, 1, 1), date(2025, 12, 31)),
            ("2025-01", "2025-53"),
        )

    def test_range_single_month_includes_slop(self):
        start, end = approximate_week_iso_range(date(2025, 3, 1), date(2025, 3, 31))
        # March covers roughly weeks 10-13, widened by two weeks each side
        self.assertEqual(start, "2025-08")
        self.assertEqual(end, "2025-15")

    def test_range_january_includes_first_weeks(self):
        start, end = approximate_week_iso_range(date(2025, 1, 1), date(2025, 1, 31))
        self.assertEqual(start, "2025-01")
        self.assertEqual(end, "2025-07")

    def test_range_spanning_years(self):
        start, end = approximate_week_iso_range(date(2024, 12, 1), date(2025, 2, 28))
        self.assertEqual(start, fiscal_period.week_iso(2024, 47))
        self.assertEqual(end, "2025-11")
