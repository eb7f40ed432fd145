"""Storage module for exported order documents."""

from .json_store import OrderStore

__all__ = ["OrderStore"]
