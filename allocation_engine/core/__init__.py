"""Core module - data models, types, configuration and exceptions."""

from .models import (
    OrderFinancials,
    PaymentInfo,
    MonthYear,
    ReportingPeriod,
    ProratedMonth,
    AllocationPlanEntry,
    CanonicalMonthEntry,
    CanonicalAllocation,
    AllocationStatus,
    PlanTotals,
    PartialAmounts,
)
from .types import (
    AllocationStatusType,
    MonthIndexing,
)
from .exceptions import (
    AllocationEngineError,
    ConfigurationError,
    OrderNotFoundError,
    OrderDataError,
    IncompleteAllocationError,
)

__all__ = [
    # Models
    "OrderFinancials",
    "PaymentInfo",
    "MonthYear",
    "ReportingPeriod",
    "ProratedMonth",
    "AllocationPlanEntry",
    "CanonicalMonthEntry",
    "CanonicalAllocation",
    "AllocationStatus",
    "PlanTotals",
    "PartialAmounts",
    # Types
    "AllocationStatusType",
    "MonthIndexing",
    # Exceptions
    "AllocationEngineError",
    "ConfigurationError",
    "OrderNotFoundError",
    "OrderDataError",
    "IncompleteAllocationError",
]
