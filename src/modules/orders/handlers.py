"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCancelled,
    OrderCompleted,
    OrderCreated,
    OrderRejected,
    OrderStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.event.created",
            order_id=str(event.aggregate_id),
            buyer_id=event.buyer_id,
            product_id=event.product_id,
            quantity=event.quantity,
        )


class OrderReleasedHandler(IEventHandler):
    """Log reject/cancel outcomes, flagging the ones that moved no stock."""

    def handle(self, event: OrderRejected | OrderCancelled) -> None:
        log = logger.bind(
            order_id=str(event.aggregate_id), event_name=event.event_name
        )
        if event.released:
            log.info("order.event.stock_released")
        else:
            log.warning("order.event.release_skipped")


class OrderCompletedHandler(IEventHandler[OrderCompleted]):
    def handle(self, event: OrderCompleted) -> None:
        logger.info(
            "order.event.completed",
            order_id=str(event.aggregate_id),
            source=event.source,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )


order_created_handler = OrderCreatedHandler()
order_released_handler = OrderReleasedHandler()
order_completed_handler = OrderCompletedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
