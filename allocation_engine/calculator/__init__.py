"""Partial amount calculation module."""

from .partial_amounts import calculate_partial_amounts, calculate_partial_amounts_for_range

__all__ = ["calculate_partial_amounts", "calculate_partial_amounts_for_range"]
