"""Django ORM implementation of the payment event log."""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.db import IntegrityError, transaction

from modules.payments.models import PaymentEvent
from modules.payments.repositories.interfaces import IPaymentEventRepository

logger = structlog.get_logger(__name__)


class PaymentEventDjangoRepository(IPaymentEventRepository):
    def get_by_id(self, id: str) -> Optional[PaymentEvent]:
        return PaymentEvent.objects.filter(id=id).first()

    def save(self, entity: PaymentEvent) -> PaymentEvent:
        entity.save()
        return entity

    def claim(
        self,
        event_id: str,
        event_type: str,
        reference: str,
        payload: Dict[str, Any],
    ) -> Optional[PaymentEvent]:
        try:
            # Savepoint so a duplicate does not poison the outer transaction.
            with transaction.atomic():
                return PaymentEvent.objects.create(
                    event_id=event_id,
                    event_type=event_type,
                    reference=reference,
                    payload=payload,
                )
        except IntegrityError:
            return None

    def set_outcome(self, entry: PaymentEvent, outcome: str) -> None:
        entry.outcome = outcome
        entry.save(update_fields=["outcome"])
