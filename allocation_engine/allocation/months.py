"""Calendar month spans and day-proportional proration.

All helpers compare dates by calendar month only and return 1-indexed
months. Invalid input yields an empty result instead of raising, so callers
can treat "no months" as "nothing to allocate".
"""

import calendar
import logging
from datetime import date
from typing import Any

from ..core.models import MonthYear, ProratedMonth
from .timestamps import coerce_datetime

logger = logging.getLogger(__name__)


def month_key(month: int, year: int) -> str:
    """Zero-padded ``YYYY-MM`` key for a 1-indexed month."""
    return f"{year}-{int(month):02d}"


def _month_index(year: int, month: int) -> int:
    return year * 12 + (month - 1)


def _from_month_index(index: int) -> MonthYear:
    year, month0 = divmod(index, 12)
    return MonthYear(month=month0 + 1, year=year)


def generate_months_between_dates(start: Any, end: Any) -> list[MonthYear]:
    """
    Generate every calendar month from ``start`` to ``end`` inclusive.

    Day of month is ignored, so a span from Jan 31 to Feb 1 covers two
    months and Jan 1 to Jan 31 covers one.

    Args:
        start: Service start (date, datetime, string or platform timestamp)
        end: Service end, same accepted shapes

    Returns:
        Ordered list of MonthYear; empty when either date is invalid or
        start falls in a later month than end
    """
    start_dt = coerce_datetime(start)
    end_dt = coerce_datetime(end)
    if start_dt is None or end_dt is None:
        logger.debug(f"Invalid date range {start!r} -> {end!r}")
        return []

    first = _month_index(start_dt.year, start_dt.month)
    last = _month_index(end_dt.year, end_dt.month)

    months = []
    current = first
    while current <= last:
        months.append(_from_month_index(current))
        current += 1
    return months


def is_cross_month(start: Any, end: Any) -> bool:
    """True when the two dates fall in different calendar months."""
    start_dt = coerce_datetime(start)
    end_dt = coerce_datetime(end)
    if start_dt is None or end_dt is None:
        return False
    return (start_dt.year, start_dt.month) != (end_dt.year, end_dt.month)


def prorate_months(start: Any, end: Any) -> list[ProratedMonth]:
    """
    Assign each month of a service period a share proportional to its days.

    Both ends are inclusive. Percentages are rounded to two decimals and the
    rounding remainder goes to the last month so the plan sums to 100.

    Args:
        start: Service start
        end: Service end

    Returns:
        List of ProratedMonth; empty for invalid or reversed ranges
    """
    start_dt = coerce_datetime(start)
    end_dt = coerce_datetime(end)
    if start_dt is None or end_dt is None:
        return []

    start_day = start_dt.date()
    end_day = end_dt.date()
    if end_day < start_day:
        return []

    total_days = (end_day - start_day).days + 1
    months = generate_months_between_dates(start_day, end_day)

    prorated: list[ProratedMonth] = []
    assigned = 0.0
    for i, my in enumerate(months):
        month_start = date(my.year, my.month, 1)
        month_end = date(my.year, my.month, calendar.monthrange(my.year, my.month)[1])
        days = (min(end_day, month_end) - max(start_day, month_start)).days + 1

        if i == len(months) - 1:
            percentage = round(100.0 - assigned, 2)
        else:
            percentage = round(days / total_days * 100, 2)
            assigned += percentage

        prorated.append(
            ProratedMonth(month=my.month, year=my.year, days=days, percentage=percentage)
        )

    return prorated


def default_month_window(today: Any = None, radius: int = 2) -> list[MonthYear]:
    """
    Months around ``today`` (``today ± radius``), used when an order has no
    service dates to derive a span from.
    """
    today_dt = coerce_datetime(today) if today is not None else None
    anchor = today_dt.date() if today_dt is not None else date.today()
    center = _month_index(anchor.year, anchor.month)
    return [_from_month_index(center + offset) for offset in range(-radius, radius + 1)]
