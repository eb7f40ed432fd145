"""Pydantic data models for the allocation engine.

All data structures are immutable (frozen) after creation; every engine
operation returns new values instead of patching the ones it was given.
"""

from typing import Any, Mapping

from pydantic import BaseModel, Field, ValidationError, model_validator

from .exceptions import OrderDataError
from .types import Amount, AllocationStatusType, Percentage


class OrderFinancials(BaseModel):
    """Totals for one order, computed upstream by the costing module."""

    revenue: Amount = 0.0
    cost: Amount = 0.0
    profit: Amount = 0.0

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def derive_profit(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and data.get("profit") is None:
            data = dict(data)
            data["profit"] = float(data.get("revenue") or 0.0) - float(data.get("cost") or 0.0)
        return data

    @classmethod
    def from_document(cls, order: Mapping[str, Any]) -> "OrderFinancials":
        """Read the ``financials`` mapping of an exported order document."""
        try:
            return cls.model_validate(order.get("financials") or {})
        except (ValidationError, ValueError, TypeError) as e:
            raise OrderDataError(str(order.get("id", "?")), f"invalid financials: {e}") from e


class PaymentInfo(BaseModel):
    """Payment state of one order."""

    amount_paid: Amount = Field(default=0.0, alias="amountPaid")

    model_config = {"frozen": True, "populate_by_name": True}

    @classmethod
    def from_document(cls, order: Mapping[str, Any]) -> "PaymentInfo":
        """Read ``paymentData.amountPaid`` of an exported order document."""
        payment = order.get("paymentData") or {}
        try:
            return cls(amount_paid=payment.get("amountPaid") or 0.0)
        except (ValidationError, ValueError, TypeError) as e:
            raise OrderDataError(str(order.get("id", "?")), f"invalid paymentData: {e}") from e


class MonthYear(BaseModel):
    """A calendar month, always 1-indexed."""

    month: int = Field(ge=1, le=12)
    year: int = Field(gt=0)

    model_config = {"frozen": True}

    @property
    def key(self) -> str:
        """Zero-padded ``YYYY-MM`` key used for grouping and ordering."""
        return f"{self.year}-{self.month:02d}"


class ReportingPeriod(MonthYear):
    """Target (year, month) of a partial amount query."""


class ProratedMonth(BaseModel):
    """One month of a day-proportional allocation plan."""

    month: int = Field(ge=1, le=12)
    year: int = Field(gt=0)
    days: int
    percentage: Percentage

    model_config = {"frozen": True}


class AllocationPlanEntry(BaseModel):
    """A month/percentage pair chosen by the user before committing."""

    month: int
    year: int
    percentage: Percentage = 0.0

    model_config = {"frozen": True}


class CanonicalMonthEntry(BaseModel):
    """Trusted month entry of an allocation.

    ``month`` and ``year`` are always valid here: entries that cannot be
    resolved are dropped before this model is built. Superseded keys carried
    by raw records (``monthKey``, ``calculatedAt``...) are kept as extras.
    ``percentage`` is left unbounded: merged duplicates may exceed 100.
    """

    month: int = Field(ge=1, le=12)
    year: int = Field(gt=0)
    percentage: Percentage = 0.0
    revenue: Amount = 0.0
    cost: Amount = 0.0
    profit: Amount = 0.0
    days: float | None = None

    model_config = {"frozen": True, "extra": "allow"}

    @property
    def key(self) -> str:
        return f"{self.year}-{self.month:02d}"

    @property
    def month_year(self) -> MonthYear:
        return MonthYear(month=self.month, year=self.year)


class CanonicalAllocation(BaseModel):
    """A normalized allocation, ready to use or to persist."""

    allocations: list[CanonicalMonthEntry] = Field(default_factory=list)
    applied_at: str = Field(alias="appliedAt")

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def total_percentage(self) -> Percentage:
        return sum(entry.percentage for entry in self.allocations)

    def to_document(self) -> dict[str, Any]:
        """Return the persisted (camelCase) shape of the allocation field."""
        return {
            "allocations": [entry.model_dump(exclude_none=True) for entry in self.allocations],
            "appliedAt": self.applied_at,
        }


class AllocationStatus(BaseModel):
    """Advisory completeness status of a set of percentages."""

    status: AllocationStatusType
    message: str
    total_percentage: Percentage

    model_config = {"frozen": True}

    @property
    def is_valid(self) -> bool:
        return self.status == AllocationStatusType.VALID


class PlanTotals(BaseModel):
    """Footer totals of an allocation plan."""

    total_percentage: Percentage
    revenue: Amount
    cost: Amount
    profit: Amount

    model_config = {"frozen": True}


class PartialAmounts(BaseModel):
    """Slice of an order's figures attributable to one reporting period."""

    revenue: Amount = 0.0
    cost: Amount = 0.0
    profit: Amount = 0.0
    paid_amount: Amount = 0.0
    balance: Amount = 0.0

    model_config = {"frozen": True}

    @property
    def profit_percentage(self) -> Percentage:
        """Profit margin of the slice (0 when there is no revenue)."""
        if self.revenue > 0:
            return self.profit / self.revenue * 100
        return 0.0

    @classmethod
    def zero(cls) -> "PartialAmounts":
        return cls()
