"""Django ORM implementation of the stock reservation repository."""

from __future__ import annotations

from typing import Iterable, List, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.inventory.models import StockReservation
from modules.inventory.repositories.interfaces import IReservationRepository

logger = structlog.get_logger(__name__)


class ReservationDjangoRepository(IReservationRepository):
    """Concrete reservation repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[StockReservation]:
        return StockReservation.objects.filter(id=id).first()

    @transaction.atomic
    def save(self, entity: StockReservation) -> StockReservation:
        entity.save()
        return entity

    def create(
        self, order_id: UUID, product_id: UUID, quantity: int
    ) -> StockReservation:
        return StockReservation.objects.create(
            order_id=order_id,
            product_id=product_id,
            quantity=quantity,
        )

    def get_for_order(self, order_id: UUID) -> Optional[StockReservation]:
        return StockReservation.objects.filter(order_id=order_id).first()

    def mark_committed(self, order_id: UUID) -> bool:
        now = timezone.now()
        updated = StockReservation.objects.filter(
            order_id=order_id,
            committed_at__isnull=True,
            released_at__isnull=True,
        ).update(committed_at=now, updated_at=now)
        return updated == 1

    def mark_released(self, order_id: UUID) -> bool:
        now = timezone.now()
        updated = StockReservation.objects.filter(
            order_id=order_id,
            released_at__isnull=True,
        ).update(released_at=now, updated_at=now)
        return updated == 1

    def unreleased_for_order_statuses(
        self, statuses: Iterable[str], limit: int
    ) -> List[StockReservation]:
        return list(
            StockReservation.objects.select_related("order")
            .filter(released_at__isnull=True, order__order_status__in=list(statuses))
            .order_by("created_at")[:limit]
        )
