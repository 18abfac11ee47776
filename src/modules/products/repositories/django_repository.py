"""Django ORM implementation of the Product repository.

Error handling follows the Null Object pattern: look-ups return ``None``
instead of raising; the Service Layer decides how to translate a
missing entity into a domain error.

Stock changes are issued as conditional ``UPDATE`` statements with ``F()``
expressions so concurrent reservations against the same product can never
lose an update or drive ``available_quantity`` below zero.
"""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def exists(self, id: str) -> bool:
        try:
            return Product.objects.filter(id=id).exists()
        except (ValueError, ValidationError):
            return False

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    def decrement_available(self, id: str, quantity: int) -> bool:
        updated = Product.objects.filter(
            id=id, available_quantity__gte=quantity
        ).update(
            available_quantity=F("available_quantity") - quantity,
            updated_at=timezone.now(),
        )
        return updated == 1

    def increment_available(self, id: str, quantity: int) -> bool:
        updated = Product.objects.filter(id=id).update(
            available_quantity=F("available_quantity") + quantity,
            updated_at=timezone.now(),
        )
        return updated == 1
