"""Stock reservation repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Iterable, List
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.inventory.models import StockReservation


class IReservationRepository(IRepository["StockReservation"]):
    @abstractmethod
    def create(self, order_id: UUID, product_id: UUID, quantity: int) -> StockReservation:
        """Persist the reservation row for *order_id*."""

    @abstractmethod
    def get_for_order(self, order_id: UUID) -> StockReservation | None:
        """Return the reservation held by *order_id*, if any."""

    @abstractmethod
    def mark_committed(self, order_id: UUID) -> bool:
        """Stamp ``committed_at`` once.  Returns whether a row changed."""

    @abstractmethod
    def mark_released(self, order_id: UUID) -> bool:
        """Stamp ``released_at`` only if still ``NULL``.

        Must be a single conditional statement: exactly one caller per
        order can ever observe ``True``.
        """

    @abstractmethod
    def unreleased_for_order_statuses(
        self, statuses: Iterable[str], limit: int
    ) -> List[StockReservation]:
        """Reservations still held by orders currently in *statuses*."""
