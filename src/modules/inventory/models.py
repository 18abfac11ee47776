"""Stock reservation records.

One row per order, written in the same transaction that decrements the
product stock.  ``released_at`` is the release-once marker: the ledger only
credits stock back when it is the one that flips it from ``NULL``.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class StockReservation(BaseModel):
    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="reservation",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    quantity = models.PositiveIntegerField()
    committed_at = models.DateTimeField(null=True, blank=True, default=None)
    released_at = models.DateTimeField(null=True, blank=True, default=None)

    class Meta:
        db_table = "stock_reservations"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["product"], name="reservations_product_idx"),
            models.Index(fields=["released_at"], name="reservations_released_idx"),
        ]

    @property
    def is_released(self) -> bool:
        return self.released_at is not None

    def __str__(self) -> str:
        state = "released" if self.is_released else "held"
        return f"{self.quantity} x {self.product_id} for {self.order_id} ({state})"
