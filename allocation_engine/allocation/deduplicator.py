"""Allocation deduplicator - merges entries that land on the same month.

Historical edits left some stored allocations with several entries for one
calendar month (often one written with ``monthKey`` and one with explicit
fields). This module groups them under the normalized month key and sums
their figures. It never writes anything back: callers re-run it on the raw
stored data every time.
"""

import logging
from typing import Any, Iterable

from ..core.models import CanonicalMonthEntry
from .normalizer import as_mapping, detect_month_indexing, extract_month_year, to_number

logger = logging.getLogger(__name__)

DEFAULT_NEGLIGIBLE_PERCENTAGE = 0.01

SUMMED_FIELDS = ("percentage", "revenue", "cost", "profit")


def deduplicate_allocations(
    entries: Iterable[Any],
    negligible: float = DEFAULT_NEGLIGIBLE_PERCENTAGE,
    record: Any = None,
) -> list[CanonicalMonthEntry]:
    """
    Merge raw entries that resolve to the same calendar month.

    This method:
    1. Drops entries whose percentage is at or below ``negligible``
    2. Resolves each remaining entry to its (year, month), with the month
       convention detected exactly as ``normalize_allocation`` detects it
    3. Sums percentage, revenue, cost, profit and days per month; other
       fields take the value of the last merged entry
    4. Sorts the result chronologically by ``YYYY-MM`` key

    Args:
        entries: Raw stored allocation entries
        negligible: Percentage at or below which an entry counts as unallocated
        record: Stored allocation the entries belong to; needed for raw
            entries of legacy records, whose months are 0-indexed

    Returns:
        List of CanonicalMonthEntry, unique by month, ascending
    """
    entries = list(entries)
    indexing = detect_month_indexing(entries, record)

    significant = []
    for entry in entries:
        data = as_mapping(entry)
        percentage = to_number(data.get("percentage")) or 0.0
        if percentage <= negligible:
            logger.debug(f"Skipping negligible allocation ({percentage}%): {entry!r}")
            continue
        significant.append(data)

    groups: dict[str, dict[str, Any]] = {}

    for data in significant:
        month_year = extract_month_year(data, indexing)
        if month_year is None:
            logger.warning(f"Skipping allocation with invalid month data: {data!r}")
            continue

        key = month_year.key
        merged = groups.get(key)
        if merged is None:
            merged = {field: 0.0 for field in SUMMED_FIELDS}
            groups[key] = merged
        else:
            logger.debug(f"Merging duplicate allocation for {key}")

        for name, value in data.items():
            if not isinstance(name, str) or name in SUMMED_FIELDS or name == "days":
                continue
            merged[name] = value

        for field in SUMMED_FIELDS:
            merged[field] += to_number(data.get(field)) or 0.0

        days = to_number(data.get("days"))
        if days is not None:
            merged["days"] = (to_number(merged.get("days")) or 0.0) + days

        merged["month"] = month_year.month
        merged["year"] = month_year.year
        if "monthKey" in merged:
            merged["monthKey"] = key

    return [CanonicalMonthEntry(**groups[key]) for key in sorted(groups)]
