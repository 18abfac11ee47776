"""Event handlers for Payments domain events."""

from __future__ import annotations

import structlog

from modules.payments.events import PaymentStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class PaymentStatusChangedHandler(IEventHandler[PaymentStatusChanged]):
    def handle(self, event: PaymentStatusChanged) -> None:
        logger.info(
            "payment.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
            source=event.source,
        )


payment_status_changed_handler = PaymentStatusChangedHandler()
