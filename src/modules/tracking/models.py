"""Production tracking checkpoints.

Append-only: a checkpoint is only ever changed through the explicit
correction path (``TrackingService.update_event``) and never deleted.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel
from modules.tracking.constants import TrackingStatus


class TrackingEvent(BaseModel):
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="tracking_events",
    )
    status = models.CharField(max_length=30, choices=TrackingStatus.choices)
    location = models.CharField(max_length=255)
    notes = models.TextField(blank=True, default="")
    images = models.JSONField(default=list, blank=True)
    estimated_completion_date = models.DateTimeField(null=True, blank=True, default=None)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="tracking_events",
    )

    class Meta:
        db_table = "tracking_events"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["order", "-created_at"], name="tracking_order_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_id}: {self.status} @ {self.location}"
