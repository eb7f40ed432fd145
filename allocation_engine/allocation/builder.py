"""Allocation builder - turns a committed month/percentage plan into the
persisted allocation shape.

The builder does not validate the plan; callers check
``get_allocation_status`` (or ``require_complete_allocation``) first.
"""

import logging
from typing import Any, Iterable, Mapping

from ..core.models import (
    AllocationPlanEntry,
    CanonicalAllocation,
    CanonicalMonthEntry,
    OrderFinancials,
)
from .normalizer import as_mapping
from .timestamps import utc_now_iso

logger = logging.getLogger(__name__)


def _plan_entry(entry: Any) -> AllocationPlanEntry:
    if isinstance(entry, AllocationPlanEntry):
        return entry
    return AllocationPlanEntry.model_validate(as_mapping(entry))


def calculate_financial_breakdown(
    plan: Iterable[Any],
    totals: OrderFinancials | Mapping[str, Any],
) -> list[CanonicalMonthEntry]:
    """
    Compute the per-month figures of a plan.

    Args:
        plan: Entries with month, year and percentage
        totals: Order totals to slice

    Returns:
        One CanonicalMonthEntry per plan entry, in plan order
    """
    if not isinstance(totals, OrderFinancials):
        totals = OrderFinancials.model_validate(as_mapping(totals))

    breakdown = []
    for raw in plan:
        entry = _plan_entry(raw)
        breakdown.append(
            CanonicalMonthEntry(
                month=entry.month,
                year=entry.year,
                percentage=entry.percentage,
                revenue=totals.revenue * entry.percentage / 100,
                cost=totals.cost * entry.percentage / 100,
                profit=totals.profit * entry.percentage / 100,
            )
        )
    return breakdown


def create_allocation(
    plan: Iterable[Any],
    totals: OrderFinancials | Mapping[str, Any],
    now: str | None = None,
) -> CanonicalAllocation:
    """
    Build a new allocation from a committed plan.

    The result replaces any allocation previously stored on the order.

    Args:
        plan: Entries with month, year and percentage
        totals: Order totals; profit falls back to revenue - cost
        now: Optional ISO-8601 instant to stamp instead of the current time

    Returns:
        CanonicalAllocation ready for persistence

    Raises:
        ValidationError: if a plan month is outside 1-12 or its year is not
            positive; the percentage total is never checked
    """
    allocations = calculate_financial_breakdown(plan, totals)
    applied_at = now or utc_now_iso()
    logger.debug(f"Built allocation with {len(allocations)} months at {applied_at}")
    return CanonicalAllocation(allocations=allocations, applied_at=applied_at)
