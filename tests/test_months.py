"""Tests for month span and proration helpers."""

from datetime import date, datetime, timezone

import pytest

from allocation_engine.allocation.months import (
    default_month_window,
    generate_months_between_dates,
    is_cross_month,
    month_key,
    prorate_months,
)
from allocation_engine.core.models import MonthYear


def _pairs(months):
    return [(m.year, m.month) for m in months]


class TestGenerateMonthsBetweenDates:
    """Tests for generate_months_between_dates."""

    def test_simple_span(self):
        """Months within one year are listed in order, 1-indexed."""
        result = generate_months_between_dates(date(2024, 1, 15), date(2024, 3, 20))
        assert result == [
            MonthYear(month=1, year=2024),
            MonthYear(month=2, year=2024),
            MonthYear(month=3, year=2024),
        ]

    def test_year_rollover(self):
        """December rolls over into January of the next year."""
        result = generate_months_between_dates(date(2023, 12, 10), date(2024, 2, 5))
        assert _pairs(result) == [(2023, 12), (2024, 1), (2024, 2)]

    def test_day_of_month_ignored(self):
        """A span ending earlier in the month than it started still counts both months."""
        result = generate_months_between_dates(date(2024, 1, 31), date(2024, 2, 1))
        assert _pairs(result) == [(2024, 1), (2024, 2)]

        same_month = generate_months_between_dates(date(2024, 5, 1), date(2024, 5, 31))
        assert _pairs(same_month) == [(2024, 5)]

    def test_invalid_input_returns_empty(self):
        """Unparseable dates never raise."""
        assert generate_months_between_dates(float("nan"), date(2024, 3, 1)) == []
        assert generate_months_between_dates("not a date", "2024-03-01") == []
        assert generate_months_between_dates(None, date(2024, 3, 1)) == []
        assert generate_months_between_dates(date(2024, 3, 1), None) == []

    def test_start_after_end_returns_empty(self):
        """A reversed range has no months."""
        assert generate_months_between_dates(date(2024, 5, 1), date(2024, 3, 31)) == []

    def test_accepts_strings_and_timestamps(self):
        """ISO strings, datetimes and stored timestamps are all accepted."""
        start = {"seconds": 1701388800}  # 2023-12-01 UTC
        end = datetime(2024, 1, 31, 23, 0, tzinfo=timezone.utc)
        assert _pairs(generate_months_between_dates(start, end)) == [(2023, 12), (2024, 1)]
        assert _pairs(generate_months_between_dates("2024-06-10", "2024-07-02")) == [
            (2024, 6),
            (2024, 7),
        ]

    def test_long_span(self):
        """Spans over several years produce one entry per month."""
        result = generate_months_between_dates(date(2022, 11, 1), date(2024, 2, 1))
        assert len(result) == 16
        assert _pairs(result)[0] == (2022, 11)
        assert _pairs(result)[-1] == (2024, 2)


class TestProrateMonths:
    """Tests for day-proportional proration."""

    def test_prorate_by_days(self):
        """Each month gets its share of the inclusive day count."""
        result = prorate_months(date(2024, 1, 15), date(2024, 3, 20))

        assert [m.days for m in result] == [17, 29, 20]
        assert result[0].percentage == pytest.approx(25.76)
        assert result[1].percentage == pytest.approx(43.94)
        assert result[2].percentage == pytest.approx(30.30)
        assert sum(m.percentage for m in result) == pytest.approx(100.0)

    def test_single_month(self):
        """A span inside one month gets 100%."""
        result = prorate_months(date(2024, 4, 3), date(2024, 4, 9))
        assert len(result) == 1
        assert result[0].days == 7
        assert result[0].percentage == 100.0

    def test_invalid_or_reversed(self):
        """Invalid and reversed ranges produce no plan."""
        assert prorate_months("garbage", date(2024, 1, 1)) == []
        assert prorate_months(date(2024, 2, 2), date(2024, 2, 1)) == []


class TestMonthHelpers:
    """Tests for small month helpers."""

    def test_is_cross_month(self):
        assert is_cross_month(date(2024, 1, 31), date(2024, 2, 1))
        assert not is_cross_month(date(2024, 1, 1), date(2024, 1, 31))
        assert not is_cross_month(None, date(2024, 1, 31))

    def test_default_month_window(self):
        """Window of two months either side, crossing the year boundary."""
        result = default_month_window(date(2024, 1, 10))
        assert _pairs(result) == [(2023, 11), (2023, 12), (2024, 1), (2024, 2), (2024, 3)]

    def test_default_month_window_radius(self):
        result = default_month_window(date(2024, 6, 1), radius=0)
        assert _pairs(result) == [(2024, 6)]

    def test_month_key(self):
        assert month_key(3, 2024) == "2024-03"
        assert month_key(12, 2023) == "2023-12"
        assert MonthYear(month=7, year=2024).key == "2024-07"
