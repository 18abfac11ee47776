"""Django ORM implementation of the Tracking repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.tracking.models import TrackingEvent
from modules.tracking.repositories.interfaces import ITrackingRepository

logger = structlog.get_logger(__name__)


class TrackingDjangoRepository(ITrackingRepository):
    def get_by_id(self, id: str) -> Optional[TrackingEvent]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return TrackingEvent.objects.select_related("order").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def save(self, entity: TrackingEvent) -> TrackingEvent:
        entity.save()
        return entity

    def create(self, data: Dict[str, Any]) -> TrackingEvent:
        event = TrackingEvent.objects.create(**data)
        logger.info(
            "tracking.persisted",
            tracking_id=str(event.id),
            order_id=str(event.order_id),
            status=event.status,
        )
        return event

    def update(self, entity: TrackingEvent, changes: Dict[str, Any]) -> TrackingEvent:
        for field, value in changes.items():
            setattr(entity, field, value)
        entity.save(update_fields=list(changes))
        return entity

    def list_for_order(self, order_id: UUID) -> List[TrackingEvent]:
        return list(
            TrackingEvent.objects.select_related("created_by")
            .filter(order_id=order_id)
            .order_by("created_at", "id")
        )
