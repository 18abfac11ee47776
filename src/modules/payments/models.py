"""Processed payment-gateway events.

One row per webhook event id.  The row is inserted before the event is
applied, in the same transaction, so a redelivered event finds it and is
acknowledged without touching the order again.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel
from modules.payments.constants import PaymentEventOutcome


class PaymentEvent(BaseModel):
    event_id = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(max_length=100)
    reference = models.CharField(max_length=255, blank=True, default="")
    outcome = models.CharField(
        max_length=20,
        choices=PaymentEventOutcome.choices,
        blank=True,
        default="",
    )
    payload = models.JSONField(default=dict)

    class Meta:
        db_table = "payment_events"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["reference"], name="payment_events_reference_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.event_type} {self.event_id} ({self.outcome or 'processing'})"
