"""Payment event log repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.payments.models import PaymentEvent


class IPaymentEventRepository(IRepository["PaymentEvent"]):
    @abstractmethod
    def claim(
        self,
        event_id: str,
        event_type: str,
        reference: str,
        payload: Dict[str, Any],
    ) -> Optional[PaymentEvent]:
        """Insert the log row for *event_id*.

        Returns ``None`` when the event was already claimed (duplicate
        delivery); the insert must rely on the unique constraint, not on a
        prior existence check.
        """

    @abstractmethod
    def set_outcome(self, entry: PaymentEvent, outcome: str) -> None:
        """Record what processing the event did."""
