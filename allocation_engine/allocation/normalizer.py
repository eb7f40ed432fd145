"""Allocation normalizer - decodes stored allocations into canonical form.

Stored allocations come from two schema generations that encode "which
month" differently: explicit ``month``/``year`` fields (0-indexed in records
written by the old workshop dialog, 1-indexed since) and composite
``monthKey`` strings, which are always 1-indexed apart from a stray ``00``
for January. This module is the only place where that encoding is
interpreted; everything it returns uses 1-12 months.
"""

import logging
import math
from typing import Any, Iterable, Mapping

from pydantic import BaseModel

from ..core.models import CanonicalAllocation, CanonicalMonthEntry, MonthYear, OrderFinancials
from ..core.types import LEGACY_ALLOCATION_FIELDS, MonthIndexing
from .timestamps import timestamp_to_iso

logger = logging.getLogger(__name__)

FINANCIAL_FIELDS = ("revenue", "cost", "profit")


def as_mapping(value: Any) -> Mapping[str, Any]:
    """View a raw entry or record as a mapping (empty if it is neither)."""
    if isinstance(value, Mapping):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    return {}


def to_number(value: Any) -> float | None:
    """Coerce a stored number (or numeric string) to a finite float."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_int(value: Any) -> int | None:
    number = to_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _decode_month(month: int, indexing: MonthIndexing | None) -> int:
    # 0 only exists in 0-indexed data, whatever the record claims
    if month == 0:
        return 1
    if indexing == MonthIndexing.ONE_BASED:
        return month
    # 12 can only be a 1-indexed December
    if 0 <= month <= 11:
        return month + 1
    return month


def _build_month_year(month: int, year: int, raw: Any) -> MonthYear | None:
    if month < 1 or month > 12 or year <= 0:
        logger.warning(f"Invalid month/year range: month={month}, year={year} (from {raw!r})")
        return None
    return MonthYear(month=month, year=year)


def _has_explicit_month(data: Mapping[str, Any]) -> bool:
    return data.get("month") is not None and data.get("year") is not None


def _decode_month_key_month(month: int) -> int:
    # monthKey is 1-indexed; "YYYY-00" comes from a 0-indexed January
    return 1 if month == 0 else month


def _split_month_key(month_key: Any) -> tuple[int, int] | None:
    parts = str(month_key).split("-")
    if len(parts) < 2:
        return None
    year = _to_int(parts[0])
    month = _to_int(parts[1])
    if year is None or month is None:
        return None
    return year, month


def extract_month_year(entry: Any, indexing: MonthIndexing | None = None) -> MonthYear | None:
    """
    Resolve the calendar month of a raw allocation entry.

    Explicit ``month``/``year`` fields take precedence over ``monthKey``.
    For explicit fields without record context (``indexing=None``) months
    0-11 are read as legacy 0-indexed values; 12 is always December.
    ``monthKey`` months are 1-indexed whatever ``indexing`` says. A parsed
    month of 0 is always corrected to January.

    Args:
        entry: Raw entry in either schema generation
        indexing: Month convention of the explicit fields of the record the
            entry belongs to, as returned by ``detect_month_indexing``

    Returns:
        MonthYear with a 1-12 month, or None if the entry cannot be resolved
    """
    data = as_mapping(entry)

    if _has_explicit_month(data):
        month = _to_int(data["month"])
        year = _to_int(data["year"])
        if month is None or year is None:
            logger.warning(
                f"Invalid month/year (not an integer): month={data['month']!r}, year={data['year']!r}"
            )
            return None
        return _build_month_year(_decode_month(month, indexing), year, data)

    month_key = data.get("monthKey")
    if month_key:
        parsed = _split_month_key(month_key)
        if parsed is None:
            logger.warning(f"Invalid monthKey: {month_key!r}")
            return None
        year, month = parsed
        return _build_month_year(_decode_month_key_month(month), year, month_key)

    return None


def _stated_months(entries: Iterable[Any]) -> set[int]:
    months: set[int] = set()
    for entry in entries:
        data = as_mapping(entry)
        if not _has_explicit_month(data):
            continue
        month = _to_int(data["month"])
        if month is not None:
            months.add(month)
    return months


def detect_month_indexing(entries: Iterable[Any], record: Any = None) -> MonthIndexing:
    """
    Decide which month convention a stored record uses.

    Only explicit ``month`` fields count as evidence: a month of 12 proves
    1-indexing and a month of 0 proves 0-indexing.
    Otherwise records written by the old dialog (recognizable by their
    legacy fields) are 0-indexed and everything else follows the current
    1-indexed schema.
    """
    months = _stated_months(entries)
    if 12 in months:
        return MonthIndexing.ONE_BASED
    if 0 in months:
        return MonthIndexing.ZERO_BASED
    if record is not None and is_legacy_allocation_format(record):
        return MonthIndexing.ZERO_BASED
    return MonthIndexing.ONE_BASED


def _is_platform_timestamp(value: Any) -> bool:
    if value is None or isinstance(value, str):
        return False
    if isinstance(value, Mapping):
        return "seconds" in value or "_seconds" in value
    if callable(getattr(value, "toDate", None)) or callable(getattr(value, "to_date", None)):
        return True
    return hasattr(value, "seconds")


def is_legacy_allocation_format(allocation: Any) -> bool:
    """True when a stored allocation predates the canonical schema."""
    data = as_mapping(allocation)
    if not data:
        return False
    if any(data.get(name) not in (None, "", {}) for name in LEGACY_ALLOCATION_FIELDS):
        return True
    return _is_platform_timestamp(data.get("appliedAt"))


def _coerce_totals(totals: Any) -> OrderFinancials:
    if isinstance(totals, OrderFinancials):
        return totals
    if totals is None:
        return OrderFinancials()
    return OrderFinancials.model_validate(as_mapping(totals))


def normalize_allocation_item(
    entry: Any,
    totals: OrderFinancials | Mapping[str, Any] | None,
    indexing: MonthIndexing | None = None,
) -> CanonicalMonthEntry | None:
    """
    Convert one raw entry into a canonical month entry.

    Financial figures already stored on the entry are kept verbatim; missing
    ones are computed from the order totals and the entry percentage.

    Args:
        entry: Raw allocation entry
        totals: Order totals used for missing figures
        indexing: Month convention of the enclosing record

    Returns:
        CanonicalMonthEntry, or None if the month cannot be resolved
    """
    month_year = extract_month_year(entry, indexing)
    if month_year is None:
        logger.warning(f"Could not extract month/year from allocation: {entry!r}")
        return None

    data = as_mapping(entry)
    order_totals = _coerce_totals(totals)
    percentage = to_number(data.get("percentage")) or 0.0

    figures = {}
    for field in FINANCIAL_FIELDS:
        stored = to_number(data.get(field))
        if stored is None:
            stored = getattr(order_totals, field) * percentage / 100
        figures[field] = stored

    return CanonicalMonthEntry(
        month=month_year.month,
        year=month_year.year,
        percentage=percentage,
        days=to_number(data.get("days")),
        **figures,
    )


def _legacy_totals(data: Mapping[str, Any]) -> OrderFinancials:
    return OrderFinancials(
        revenue=to_number(data.get("originalRevenue")) or 0.0,
        cost=to_number(data.get("originalCost")) or 0.0,
        profit=to_number(data.get("originalProfit")),
    )


def normalize_allocation(
    allocation: Any,
    totals: OrderFinancials | Mapping[str, Any] | None = None,
) -> CanonicalAllocation | None:
    """
    Normalize a stored allocation field (either generation).

    Args:
        allocation: The stored ``allocation`` value of an order
        totals: Order totals; when omitted, the legacy ``original*`` figures
            stored on the record are used

    Returns:
        CanonicalAllocation, or None if there is no ``allocations`` list
    """
    data = as_mapping(allocation)
    entries = data.get("allocations")
    if not isinstance(entries, (list, tuple)):
        return None

    order_totals = _coerce_totals(totals) if totals is not None else _legacy_totals(data)
    indexing = detect_month_indexing(entries, data)
    logger.debug(f"Normalizing {len(entries)} allocation entries as {indexing.value}")

    normalized = []
    for entry in entries:
        item = normalize_allocation_item(entry, order_totals, indexing)
        if item is not None:
            normalized.append(item)

    return CanonicalAllocation(
        allocations=normalized,
        applied_at=timestamp_to_iso(data.get("appliedAt")),
    )
