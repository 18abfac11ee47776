"""Inventory reservation ledger.

The ledger is the only writer of ``Product.available_quantity`` on behalf
of orders.  Every stock change is one conditional ``UPDATE`` issued by the
product repository; reservations are tracked per order so a release can
happen at most once no matter how many transitions ask for it.

All methods expect to run inside the caller's transaction: the order
status write and the stock movement commit or roll back together.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional

import structlog

from modules.inventory.exceptions import InsufficientStock, StockReleaseFailed
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.inventory.repositories.interfaces import IReservationRepository
    from modules.orders.models import Order
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

SWEEP_BATCH_SIZE = 100


class InventoryLedger:
    """Reserve, commit and release stock for orders."""

    def __init__(
        self,
        product_repository: IProductRepository,
        reservation_repository: IReservationRepository,
    ) -> None:
        self._product_repo = product_repository
        self._reservation_repo = reservation_repository

    def reserve(self, product_id, quantity: int) -> None:
        """Atomically subtract *quantity* from the product's stock.

        Raises:
            ProductNotFound: the product no longer exists.
            InsufficientStock: a concurrent reservation left too little stock.
        """
        log = logger.bind(product_id=str(product_id), quantity=quantity)
        if self._product_repo.decrement_available(str(product_id), quantity):
            log.info("inventory.reserved")
            return

        if not self._product_repo.exists(str(product_id)):
            raise ProductNotFound()
        log.warning("inventory.reserve_conflict")
        raise InsufficientStock()

    def record(self, order: Order) -> None:
        """Persist the reservation held by a freshly created *order*."""
        self._reservation_repo.create(
            order_id=order.id,
            product_id=order.product_id,
            quantity=order.quantity,
        )

    def commit(self, order: Order) -> bool:
        """Mark the reservation of an approved order as committed."""
        committed = self._reservation_repo.mark_committed(order.id)
        logger.info(
            "inventory.committed",
            order_id=str(order.id),
            changed=committed,
        )
        return committed

    def release(self, order: Order) -> bool:
        """Give the order's reserved quantity back to the product, once.

        Returns ``True`` when stock was credited, ``False`` when the
        reservation had already been released.

        Raises:
            StockReleaseFailed: the order has no reservation, or the marker
                was claimed but the product row could not be updated; the
                caller's transaction must abort.
        """
        log = logger.bind(order_id=str(order.id), product_id=str(order.product_id))

        reservation = self._reservation_repo.get_for_order(order.id)
        if reservation is None:
            log.error("inventory.release_without_reservation")
            raise StockReleaseFailed("Order has no stock reservation.")

        if not self._reservation_repo.mark_released(order.id):
            log.info("inventory.release_skipped", reason="already_released")
            return False

        if not self._product_repo.increment_available(
            str(reservation.product_id), reservation.quantity
        ):
            log.error("inventory.release_failed", quantity=reservation.quantity)
            raise StockReleaseFailed()

        log.info("inventory.released", quantity=reservation.quantity)
        return True

    def sweep_unreleased(
        self,
        order_statuses,
        batch_size: int = SWEEP_BATCH_SIZE,
    ) -> Dict[str, int]:
        """Release reservations still held by orders in *order_statuses*.

        Repairs reservations left behind by writes that bypassed the order
        service.  Each repair is logged at warning level.
        """
        repaired = 0
        candidates = self._reservation_repo.unreleased_for_order_statuses(
            order_statuses, batch_size
        )
        for reservation in candidates:
            if self.release(reservation.order):
                repaired += 1
                logger.warning(
                    "inventory.sweep_repaired",
                    order_id=str(reservation.order_id),
                    order_status=reservation.order.order_status,
                    quantity=reservation.quantity,
                )
        return {"checked": len(candidates), "repaired": repaired}


def build_inventory_ledger(
    product_repository: Optional[IProductRepository] = None,
    reservation_repository: Optional[IReservationRepository] = None,
) -> InventoryLedger:
    """Wire the ledger with the Django repositories by default."""
    from modules.inventory.repositories.django_repository import (
        ReservationDjangoRepository,
    )
    from modules.products.repositories.django_repository import (
        ProductDjangoRepository,
    )

    return InventoryLedger(
        product_repository=product_repository or ProductDjangoRepository(),
        reservation_repository=reservation_repository
        or ReservationDjangoRepository(),
    )
