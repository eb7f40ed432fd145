"""Allocation module.

Normalizes, deduplicates, validates and builds per-month order allocations.
"""

from .builder import calculate_financial_breakdown, create_allocation
from .deduplicator import deduplicate_allocations
from .months import (
    default_month_window,
    generate_months_between_dates,
    is_cross_month,
    month_key,
    prorate_months,
)
from .normalizer import (
    detect_month_indexing,
    extract_month_year,
    is_legacy_allocation_format,
    normalize_allocation,
    normalize_allocation_item,
)
from .timestamps import coerce_datetime, timestamp_to_iso
from .validator import calculate_plan_totals, get_allocation_status, require_complete_allocation

__all__ = [
    "calculate_financial_breakdown",
    "create_allocation",
    "deduplicate_allocations",
    "default_month_window",
    "generate_months_between_dates",
    "is_cross_month",
    "month_key",
    "prorate_months",
    "detect_month_indexing",
    "extract_month_year",
    "is_legacy_allocation_format",
    "normalize_allocation",
    "normalize_allocation_item",
    "coerce_datetime",
    "timestamp_to_iso",
    "calculate_plan_totals",
    "get_allocation_status",
    "require_complete_allocation",
]
