"""Domain events for the Payments bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class PaymentStatusChanged(DomainEvent):
    """Raised when a gateway signal changes an order's payment status.

    ``aggregate_id`` is the order id; ``source`` is ``confirm`` or
    ``webhook``.
    """

    old_status: str = ""
    new_status: str = ""
    reference: str = ""
    source: str = ""
