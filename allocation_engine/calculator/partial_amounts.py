"""Partial amount calculator - slices an order's figures for a reporting period.

Formulas for an allocated order (``ratio = allocated percentage / 100``):
- revenue = total_revenue × ratio
- cost = total_cost × ratio
- profit = revenue - cost
- paid_amount = amount_paid × ratio
- balance = revenue - paid_amount

An order without an allocation belongs to a single period and is returned
unsliced. An allocated order with nothing in the requested period returns
zeros, so its totals are never counted in periods it was not allocated to.
"""

import logging
from datetime import date
from typing import Any, Mapping

from ..allocation.normalizer import as_mapping, normalize_allocation
from ..allocation.timestamps import coerce_datetime
from ..core.models import (
    CanonicalAllocation,
    OrderFinancials,
    PartialAmounts,
    PaymentInfo,
    ReportingPeriod,
)

logger = logging.getLogger(__name__)


def _order_allocation(order: Any) -> Any:
    if isinstance(order, Mapping):
        return order.get("allocation")
    return getattr(order, "allocation", None)


def _coerce_totals(totals: Any) -> OrderFinancials:
    if isinstance(totals, OrderFinancials):
        return totals
    return OrderFinancials.model_validate(as_mapping(totals))


def _coerce_payment(payment_info: Any) -> PaymentInfo:
    if isinstance(payment_info, PaymentInfo):
        return payment_info
    if payment_info is None:
        return PaymentInfo()
    return PaymentInfo.model_validate(as_mapping(payment_info))


def _coerce_period(target: Any) -> ReportingPeriod:
    if isinstance(target, ReportingPeriod):
        return target
    if isinstance(target, Mapping):
        return ReportingPeriod.model_validate(target)
    return ReportingPeriod(month=target.month, year=target.year)


def _allocated(order: Any, totals: OrderFinancials) -> CanonicalAllocation | None:
    """Normalized allocation of an order, or None for single-period orders."""
    raw = _order_allocation(order)
    entries = as_mapping(raw).get("allocations")
    if not entries:
        return None
    return normalize_allocation(raw, totals)


def _unsliced(totals: OrderFinancials, payment: PaymentInfo) -> PartialAmounts:
    return PartialAmounts(
        revenue=totals.revenue,
        cost=totals.cost,
        profit=totals.profit,
        paid_amount=payment.amount_paid,
        balance=totals.revenue - payment.amount_paid,
    )


def _sliced(totals: OrderFinancials, payment: PaymentInfo, percentage: float) -> PartialAmounts:
    ratio = percentage / 100
    revenue = totals.revenue * ratio
    cost = totals.cost * ratio
    paid_amount = payment.amount_paid * ratio
    return PartialAmounts(
        revenue=revenue,
        cost=cost,
        profit=revenue - cost,
        paid_amount=paid_amount,
        balance=revenue - paid_amount,
    )


def calculate_partial_amounts(
    order: Any,
    totals: OrderFinancials | Mapping[str, Any],
    payment_info: PaymentInfo | Mapping[str, Any] | None,
    target: ReportingPeriod | Mapping[str, Any],
) -> PartialAmounts:
    """
    Calculate the slice of an order attributable to one calendar month.

    Args:
        order: Order document (mapping or object with an ``allocation``)
        totals: Order totals from the costing module
        payment_info: Payment state (``amountPaid``)
        target: Reporting period as (year, month), month 1-12

    Returns:
        PartialAmounts for the period
    """
    order_totals = _coerce_totals(totals)
    payment = _coerce_payment(payment_info)
    period = _coerce_period(target)

    allocation = _allocated(order, order_totals)
    if allocation is None:
        return _unsliced(order_totals, payment)

    matches = [
        entry for entry in allocation.allocations
        if entry.year == period.year and entry.month == period.month
    ]
    if not matches:
        logger.debug(f"Order allocated elsewhere, nothing in {period.key}")
        return PartialAmounts.zero()

    percentage = sum(entry.percentage for entry in matches)
    return _sliced(order_totals, payment, percentage)


def calculate_partial_amounts_for_range(
    order: Any,
    totals: OrderFinancials | Mapping[str, Any],
    payment_info: PaymentInfo | Mapping[str, Any] | None,
    date_from: Any,
    date_to: Any,
) -> PartialAmounts:
    """
    Calculate the slice of an order attributable to a date range.

    Every allocation month whose first day falls within the range (both
    ends inclusive, whole days) contributes its percentage.

    Args:
        order: Order document
        totals: Order totals
        payment_info: Payment state
        date_from: Range start
        date_to: Range end

    Returns:
        PartialAmounts for the range; unsliced when the order has no
        allocation or the range is unusable
    """
    order_totals = _coerce_totals(totals)
    payment = _coerce_payment(payment_info)

    allocation = _allocated(order, order_totals)
    start_dt = coerce_datetime(date_from)
    end_dt = coerce_datetime(date_to)
    if allocation is None or start_dt is None or end_dt is None:
        return _unsliced(order_totals, payment)

    start_day = start_dt.date()
    end_day = end_dt.date()
    percentage = sum(
        entry.percentage
        for entry in allocation.allocations
        if start_day <= date(entry.year, entry.month, 1) <= end_day
    )
    if percentage <= 0:
        return PartialAmounts.zero()

    return _sliced(order_totals, payment, percentage)
