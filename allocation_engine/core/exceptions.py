"""Custom exceptions for the allocation engine.

The pure engine functions never raise for bad stored data (they drop and
warn); these exceptions cover configuration, the order export store and
callers that gate a commit on a complete allocation.
"""

from typing import Any


class AllocationEngineError(Exception):
    """Base exception for all allocation engine errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(AllocationEngineError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, message: str):
        full_message = f"Configuration error [{config_key}]: {message}"
        super().__init__(full_message, {"config_key": config_key})
        self.config_key = config_key


class OrderNotFoundError(AllocationEngineError):
    """Raised when an order id is not present in the order store."""

    def __init__(self, order_id: str, source: str | None = None):
        message = f"Order not found: {order_id}"
        if source:
            message += f" (in {source})"
        super().__init__(message, {"order_id": order_id, "source": source})
        self.order_id = order_id


class OrderDataError(AllocationEngineError):
    """Raised when an order document or export file is malformed."""

    def __init__(self, order_id: str, message: str):
        full_message = f"Invalid order data [{order_id}]: {message}"
        super().__init__(full_message, {"order_id": order_id})
        self.order_id = order_id


class IncompleteAllocationError(AllocationEngineError):
    """Raised when a plan is committed without summing to 100%."""

    def __init__(self, status: Any):
        super().__init__(
            f"Allocation is not complete: {status.message}",
            {"status": status.status.value, "total_percentage": status.total_percentage},
        )
        self.status = status
