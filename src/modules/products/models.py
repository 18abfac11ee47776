"""Product catalog model.

The catalog itself is owned by another part of the platform; the order
engine only reads price, minimum order quantity and payment options, and
mutates ``available_quantity`` through the inventory ledger.

Constraints:
- Price must be greater than zero.
- ``available_quantity`` can never go negative (database check constraint,
  backing the conditional decrement in the ledger).
- ``minimum_order_quantity`` is at least 1.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.payments.constants import PaymentMethod
from modules.products.constants import ProductCategory

logger = structlog.get_logger(__name__)


def default_payment_options() -> List[str]:
    return [PaymentMethod.CASH_ON_DELIVERY.value]


class Product(BaseModel):
    name = models.CharField(max_length=100)
    description = models.TextField(max_length=1000, blank=True, default="")
    category = models.CharField(
        max_length=20,
        choices=ProductCategory.choices,
        default=ProductCategory.OTHER,
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    available_quantity = models.PositiveIntegerField(default=0)
    minimum_order_quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    payment_options = models.JSONField(default=default_payment_options)
    images = models.JSONField(default=list, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["category"], name="products_category_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(available_quantity__gte=0),
                name="products_available_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(minimum_order_quantity__gte=1),
                name="products_min_order_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})
        unknown = set(self.payment_options or []) - set(PaymentMethod.values)
        if unknown:
            raise ValidationError(
                {"payment_options": f"Unknown payment options: {sorted(unknown)}."}
            )
        if not self.payment_options:
            raise ValidationError(
                {"payment_options": "At least one payment option is required."}
            )

    def accepts_payment_method(self, method: str) -> bool:
        return method in (self.payment_options or [])

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.name} ({self.available_quantity} available)"
