"""Tasks assíncronas do módulo core."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.db import transaction
from django.db.models import Q

from modules.core.models import EventStatus, OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

OUTBOX_BATCH_SIZE = 100
OUTBOX_MAX_RETRIES = 5


@shared_task(name="core.relay_outbox_events")
def relay_outbox_events(batch_size: int = OUTBOX_BATCH_SIZE) -> dict:
    """Publish pending outbox events to the in-process event bus.

    Events are handled one at a time in their own transaction; a failing
    handler marks only that event as ``FAILED`` (retried until
    ``OUTBOX_MAX_RETRIES``).
    """
    candidates = list(
        OutboxEvent.objects.filter(
            Q(status=EventStatus.PENDING)
            | Q(status=EventStatus.FAILED, retry_count__lt=OUTBOX_MAX_RETRIES)
        )
        .order_by("created_at")
        .values_list("id", flat=True)[:batch_size]
    )

    published = failed = 0
    for event_pk in candidates:
        with transaction.atomic():
            outbox_event = (
                OutboxEvent.objects.select_for_update().filter(id=event_pk).first()
            )
            if outbox_event is None or outbox_event.status == EventStatus.PUBLISHED:
                continue
            try:
                event = DomainEvent.from_payload(
                    outbox_event.event_type, outbox_event.payload
                )
                event_bus.publish(event)
            except Exception as exc:  # noqa: BLE001 - recorded on the row
                outbox_event.mark_as_failed(str(exc))
                failed += 1
                logger.error(
                    "outbox.publish_failed",
                    outbox_id=str(outbox_event.id),
                    event_type=outbox_event.event_type,
                    retry_count=outbox_event.retry_count,
                    error=str(exc),
                )
                continue
            outbox_event.mark_as_published()
            published += 1

    logger.info("outbox.relay_completed", published=published, failed=failed)
    return {"published": published, "failed": failed}
