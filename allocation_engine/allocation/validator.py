"""Allocation validator - advisory completeness checks for percentage plans."""

import logging
from typing import Any, Iterable, Mapping

from ..core.exceptions import IncompleteAllocationError
from ..core.models import AllocationStatus, OrderFinancials, PlanTotals
from ..core.types import AllocationStatusType
from .normalizer import as_mapping, to_number

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.01


def _total_percentage(entries: Iterable[Any]) -> float:
    return sum(to_number(as_mapping(entry).get("percentage")) or 0.0 for entry in entries)


def get_allocation_status(
    entries: Iterable[Any],
    tolerance: float = DEFAULT_TOLERANCE,
) -> AllocationStatus:
    """
    Classify a set of percentages as complete, over- or under-allocated.

    Args:
        entries: Plan or allocation entries carrying a ``percentage``
        tolerance: Allowed distance from 100%

    Returns:
        AllocationStatus with a user-facing message
    """
    total = _total_percentage(entries)
    remaining = 100 - total

    if abs(remaining) <= tolerance:
        status = AllocationStatusType.VALID
        message = "Allocation is complete and ready to apply"
    elif total > 100:
        status = AllocationStatusType.OVER
        message = f"Total exceeds 100% by {abs(remaining):.1f}%"
    else:
        status = AllocationStatusType.UNDER
        message = f"{abs(remaining):.1f}% remaining to reach 100%"

    return AllocationStatus(status=status, message=message, total_percentage=total)


def calculate_plan_totals(
    plan: Iterable[Any],
    totals: OrderFinancials | Mapping[str, Any],
) -> PlanTotals:
    """Total percentage and the revenue/cost/profit a plan would allocate."""
    if not isinstance(totals, OrderFinancials):
        totals = OrderFinancials.model_validate(as_mapping(totals))

    total_percentage = _total_percentage(plan)
    revenue = totals.revenue * total_percentage / 100
    cost = totals.cost * total_percentage / 100
    return PlanTotals(
        total_percentage=total_percentage,
        revenue=revenue,
        cost=cost,
        profit=revenue - cost,
    )


def require_complete_allocation(
    plan: Iterable[Any],
    tolerance: float = DEFAULT_TOLERANCE,
) -> AllocationStatus:
    """
    Gate for committing a plan.

    Raises:
        IncompleteAllocationError: if the plan does not sum to 100%
    """
    status = get_allocation_status(plan, tolerance=tolerance)
    if not status.is_valid:
        logger.warning(f"Rejected allocation plan: {status.message}")
        raise IncompleteAllocationError(status)
    return status
