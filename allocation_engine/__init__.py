"""Order Allocation Engine.

Spreads an order's revenue, cost and profit across the calendar months of
its service period, cleans historically inconsistent stored allocations and
slices order figures for accrual-style reporting.
"""

__version__ = "0.1.0"
