"""Order domain constants.

Defines status choices and valid status transitions for the order
state machine.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    IN_PRODUCTION = "in_production", "In production"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {
        OrderStatus.APPROVED,
        OrderStatus.REJECTED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.APPROVED: {OrderStatus.IN_PRODUCTION, OrderStatus.COMPLETED},
    OrderStatus.IN_PRODUCTION: {OrderStatus.COMPLETED},
    OrderStatus.REJECTED: set(),
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {
    OrderStatus.REJECTED,
    OrderStatus.COMPLETED,
    OrderStatus.CANCELLED,
}

# Transitions that give the reservation back to the product.
RELEASING_STATES: set[str] = {OrderStatus.REJECTED, OrderStatus.CANCELLED}

# Timestamp stamped (once) when the order enters the status.
STATUS_TIMESTAMP_FIELDS: dict[str, str] = {
    OrderStatus.APPROVED: "approved_at",
    OrderStatus.REJECTED: "rejected_at",
    OrderStatus.CANCELLED: "cancelled_at",
    OrderStatus.COMPLETED: "completed_at",
}
