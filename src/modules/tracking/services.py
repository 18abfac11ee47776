"""Tracking service layer.

Records production checkpoints against orders.  A ``Delivered``
checkpoint, whether recorded or set through a correction, completes the
order through ``OrderService.complete_from_delivery`` in the same
transaction as the checkpoint write.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Tuple

import structlog
from django.db import transaction

from modules.core.policies import Action, authorize
from modules.orders.exceptions import OrderNotFound
from modules.tracking.constants import COMPLETING_STATUS
from modules.tracking.exceptions import TrackingEventNotFound

if TYPE_CHECKING:
    from modules.core.policies import Principal
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.services import OrderService
    from modules.tracking.dtos import RecordTrackingDTO, UpdateTrackingDTO
    from modules.tracking.models import TrackingEvent
    from modules.tracking.repositories.interfaces import ITrackingRepository

logger = structlog.get_logger(__name__)


class TrackingService:
    def __init__(
        self,
        tracking_repository: ITrackingRepository,
        order_repository: IOrderRepository,
        order_service: OrderService,
    ) -> None:
        self._tracking_repo = tracking_repository
        self._order_repo = order_repository
        self._order_service = order_service

    @transaction.atomic
    def record_event(
        self, principal: Principal, dto: RecordTrackingDTO
    ) -> Tuple[TrackingEvent, Order]:
        """Append a checkpoint; ``Delivered`` forces the order to completed.

        Returns the checkpoint and the (possibly updated) order.

        Raises:
            OrderNotFound: order does not exist.
            AuthorizationError: caller is not a manager or admin.
        """
        order = self._get_order(dto.order_id)
        authorize(principal, Action.TRACKING_RECORD)

        event = self._tracking_repo.create(
            {
                "order_id": order.id,
                "status": dto.status,
                "location": dto.location,
                "notes": dto.notes,
                "images": list(dto.images),
                "estimated_completion_date": dto.estimated_completion_date,
                "created_by_id": principal.id,
            }
        )
        logger.info(
            "tracking.recorded",
            tracking_id=str(event.id),
            order_id=str(order.id),
            status=event.status,
        )

        if event.status == COMPLETING_STATUS:
            order = self._order_service.complete_from_delivery(order.id, principal.id)
        return event, order

    @transaction.atomic
    def update_event(
        self, principal: Principal, tracking_id: Any, dto: UpdateTrackingDTO
    ) -> TrackingEvent:
        """Correct a checkpoint.  The order it belongs to cannot change."""
        authorize(principal, Action.TRACKING_UPDATE)
        event = self._tracking_repo.get_by_id(str(tracking_id))
        if event is None:
            raise TrackingEventNotFound()

        changes = dto.changes()
        was_delivered = event.status == COMPLETING_STATUS
        if changes:
            event = self._tracking_repo.update(event, changes)
        logger.info(
            "tracking.updated",
            tracking_id=str(event.id),
            fields=sorted(changes),
        )

        if event.status == COMPLETING_STATUS and not was_delivered:
            self._order_service.complete_from_delivery(event.order_id, principal.id)
        return event

    def list_for_order(self, principal: Principal, order_id: Any) -> List[TrackingEvent]:
        order = self._get_order(order_id)
        authorize(principal, Action.TRACKING_VIEW, owner_id=order.buyer_id)
        return self._tracking_repo.list_for_order(order.id)

    def _get_order(self, order_id: Any) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            raise OrderNotFound()
        return order


def build_tracking_service() -> TrackingService:
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.orders.services import build_order_service
    from modules.tracking.repositories.django_repository import (
        TrackingDjangoRepository,
    )

    return TrackingService(
        tracking_repository=TrackingDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        order_service=build_order_service(),
    )
