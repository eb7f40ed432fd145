"""Type definitions and enums for the allocation engine."""

from enum import Enum


class AllocationStatusType(str, Enum):
    """Completeness of a set of allocation percentages."""

    VALID = "valid"   # Sums to 100% within tolerance
    OVER = "over"     # Exceeds 100%
    UNDER = "under"   # Short of 100%

    @property
    def display_name(self) -> str:
        """Human-readable display name."""
        names = {
            self.VALID: "Complete",
            self.OVER: "Over-allocated",
            self.UNDER: "Under-allocated",
        }
        return names.get(self, self.value)


class MonthIndexing(str, Enum):
    """Month numbering convention of a stored allocation record."""

    ZERO_BASED = "zero_based"   # Legacy records: January == 0
    ONE_BASED = "one_based"     # Current schema: January == 1


# Type aliases for common patterns
Percentage = float  # 0-100 scale
Amount = float      # Currency amount

# Persisted allocation keys that only appear on records written before the
# canonical schema existed
LEGACY_ALLOCATION_FIELDS = (
    "dateRange",
    "method",
    "originalRevenue",
    "originalCost",
    "originalProfit",
    "recalculatedAt",
    "calculatedAt",
)

