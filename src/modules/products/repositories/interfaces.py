"""Product repository interface.

Extends ``IRepository[Product]`` with the two stock primitives the
inventory ledger is built on.  Both must be a single atomic statement
against the store, never a read-then-write pair.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product catalog."""

    @abstractmethod
    def decrement_available(self, id: str, quantity: int) -> bool:
        """Subtract *quantity* only if enough stock is available.

        Returns ``True`` when the row was updated, ``False`` otherwise
        (missing product or insufficient stock).
        """

    @abstractmethod
    def increment_available(self, id: str, quantity: int) -> bool:
        """Add *quantity* back.  Returns ``False`` if the product is missing."""

    @abstractmethod
    def exists(self, id: str) -> bool:
        """Return whether a product with *id* exists."""
