"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  Each one
specialises a kind from ``modules.core.exceptions`` so the API boundary
can map it to a status code without knowing the order module.
"""

from __future__ import annotations

from modules.core.exceptions import (
    ConflictError,
    NotFoundError,
    StateError,
    ValidationError,
)


class OrderNotFound(NotFoundError):
    """The requested order does not exist."""

    default_message = "Order not found."


class InvalidOrderStatus(StateError):
    """An invalid status transition was attempted."""


class UnknownOrderStatus(ValidationError):
    """The requested status is not part of the order vocabulary."""


class OrderModified(ConflictError):
    """The order status changed between read and conditional write."""

    default_message = "Order was modified concurrently, please retry."


class InvalidOrderQuantity(ValidationError):
    """Quantity below the product minimum or above the available stock."""


class PaymentMethodNotAllowed(ValidationError):
    """The product does not accept the requested payment method."""
