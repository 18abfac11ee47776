"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.

Concurrency control uses conditional ``UPDATE`` statements guarded by the
status the caller read (optimistic, no ``version`` field): a status or
payment write that finds the row changed affects zero rows and reports
``False``.  ``total_price`` is recomputed with ``F()`` arithmetic on every
conditional update so it can never drift from ``unit_price * quantity``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository
from modules.payments.constants import PaymentStatus
from shared.infrastructure.outbox import store_events

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(
            buyer_id=data["buyer_id"],
            product_id=data["product_id"],
            quantity=data["quantity"],
            unit_price=data["unit_price"],
            first_name=data["first_name"],
            last_name=data["last_name"],
            email=data.get("email", ""),
            contact_number=data["contact_number"],
            delivery_address=data["delivery_address"],
            additional_notes=data.get("additional_notes", ""),
            payment_method=data["payment_method"],
        )
        order.save()
        logger.info(
            "order.persisted",
            order_id=str(order.id),
            total_price=str(order.total_price),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with its buyer and product joined.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_related("buyer", "product")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(
        self,
        filters: Optional[Dict[str, Any]] = None,
        buyer_id: Optional[UUID] = None,
    ) -> QuerySet:
        queryset = Order.objects.select_related("buyer", "product")
        if buyer_id is not None:
            queryset = queryset.filter(buyer_id=buyer_id)
        if filters:
            queryset = queryset.filter(**filters)
        return queryset.order_by("-created_at", "-id")

    def get_by_payment_reference(self, reference: str) -> Optional[Order]:
        if not reference:
            return None
        return (
            Order.objects.select_related("buyer", "product")
            .filter(payment_reference=reference)
            .first()
        )

    def get_payment_status(self, order_id: UUID) -> Optional[str]:
        return (
            Order.objects.filter(id=order_id)
            .values_list("payment_status", flat=True)
            .first()
        )

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and its pending domain events."""
        entity.save()
        count = self.store_domain_events(entity)
        logger.info("order.saved", order_id=str(entity.id), event_count=count)
        return entity

    def store_domain_events(self, entity: Order) -> int:
        count = store_events(entity.domain_events, topic=OUTBOX_TOPIC)
        entity.clear_domain_events()
        return count

    # ------------------------------------------------------------------
    # Conditional writes
    # ------------------------------------------------------------------

    def transition(
        self,
        order_id: UUID,
        expected_status: str,
        new_status: str,
        stamps: Optional[Dict[str, datetime]] = None,
    ) -> bool:
        updated = Order.objects.filter(
            id=order_id, order_status=expected_status
        ).update(
            order_status=new_status,
            total_price=F("unit_price") * F("quantity"),
            updated_at=timezone.now(),
            **(stamps or {}),
        )
        return updated == 1

    def set_payment_reference(self, order_id: UUID, reference: str) -> bool:
        updated = (
            Order.objects.filter(id=order_id, order_status=OrderStatus.PENDING)
            .exclude(payment_status=PaymentStatus.PAID)
            .update(
                payment_reference=reference,
                total_price=F("unit_price") * F("quantity"),
                updated_at=timezone.now(),
            )
        )
        return updated == 1

    def update_payment_status(
        self, order_id: UUID, expected_status: str, new_status: str
    ) -> bool:
        updated = Order.objects.filter(
            id=order_id, payment_status=expected_status
        ).update(
            payment_status=new_status,
            total_price=F("unit_price") * F("quantity"),
            updated_at=timezone.now(),
        )
        return updated == 1

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: UUID,
        old_status: Optional[str],
        new_status: str,
        user_id: Optional[UUID] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            user_id=user_id,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history

    def history(self, order_id: UUID) -> List[OrderStatusHistory]:
        return list(
            OrderStatusHistory.objects.filter(order_id=order_id).order_by(
                "created_at", "id"
            )
        )
