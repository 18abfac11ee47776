"""Order repository interface.

Extends ``IRepository[Order]`` with the methods required by the Order
aggregate: creation, conditional status and payment writes, status
history tracking and payment-reference look-up.

Every status or payment write is conditional on the value the caller
read, so the Service Layer can detect concurrent modification instead of
overwriting it.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order in ``pending``.

        ``data`` must include ``buyer_id``, ``product_id``, ``quantity``,
        ``unit_price``, ``payment_method`` and the fulfillment fields.
        """

    @abstractmethod
    def list(
        self,
        filters: Optional[Dict[str, Any]] = None,
        buyer_id: Optional[UUID] = None,
    ) -> QuerySet:
        """Orders newest first, optionally scoped to one buyer."""

    @abstractmethod
    def transition(
        self,
        order_id: UUID,
        expected_status: str,
        new_status: str,
        stamps: Optional[Dict[str, datetime]] = None,
    ) -> bool:
        """Set ``order_status`` only if it still equals *expected_status*.

        Returns ``False`` when no row matched (status changed meanwhile).
        """

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        old_status: Optional[str],
        new_status: str,
        user_id: Optional[UUID] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def history(self, order_id: UUID) -> List[OrderStatusHistory]:
        """Status history for *order_id*, oldest first."""

    @abstractmethod
    def store_domain_events(self, entity: Order) -> int:
        """Write the entity's pending domain events to the outbox."""

    @abstractmethod
    def get_by_payment_reference(self, reference: str) -> Optional[Order]:
        """Retrieve the order linked to a gateway payment reference."""

    @abstractmethod
    def set_payment_reference(self, order_id: UUID, reference: str) -> bool:
        """Attach *reference* only while the order is pending and unpaid."""

    @abstractmethod
    def update_payment_status(
        self, order_id: UUID, expected_status: str, new_status: str
    ) -> bool:
        """Set ``payment_status`` only if it still equals *expected_status*."""

    @abstractmethod
    def get_payment_status(self, order_id: UUID) -> Optional[str]:
        """Fresh ``payment_status`` value from the store."""
