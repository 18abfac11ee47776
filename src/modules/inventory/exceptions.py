"""Inventory ledger exceptions."""

from __future__ import annotations

from modules.core.exceptions import ConflictError


class InsufficientStock(ConflictError):
    """The conditional stock decrement lost against a concurrent reservation."""

    default_message = "Not enough stock available."


class StockReleaseFailed(ConflictError):
    """The release marker was set but the stock could not be credited back."""

    default_message = "Could not release reserved stock."
