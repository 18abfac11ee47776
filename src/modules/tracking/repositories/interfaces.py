"""Tracking repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.tracking.models import TrackingEvent


class ITrackingRepository(IRepository["TrackingEvent"]):
    @abstractmethod
    def create(self, data: Dict[str, Any]) -> TrackingEvent:
        """Append a checkpoint."""

    @abstractmethod
    def update(self, entity: TrackingEvent, changes: Dict[str, Any]) -> TrackingEvent:
        """Apply a correction to an existing checkpoint."""

    @abstractmethod
    def list_for_order(self, order_id: UUID) -> List[TrackingEvent]:
        """Checkpoints of *order_id*, oldest first."""
