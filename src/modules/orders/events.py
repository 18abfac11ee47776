"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is placed and its stock reserved."""

    buyer_id: str = ""
    product_id: str = ""
    quantity: int = 0
    total_price: str = "0"


@dataclass(frozen=True)
class OrderApproved(DomainEvent):
    pass


@dataclass(frozen=True)
class OrderRejected(DomainEvent):
    released: bool = False


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    released: bool = False


@dataclass(frozen=True)
class OrderCompleted(DomainEvent):
    """Raised when an order reaches ``completed`` (override or delivery)."""

    source: str = ""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised on every transition, alongside the specific event."""

    old_status: str = ""
    new_status: str = ""
