"""Tracking repositories package."""

from modules.tracking.repositories.django_repository import TrackingDjangoRepository
from modules.tracking.repositories.interfaces import ITrackingRepository

__all__ = ["ITrackingRepository", "TrackingDjangoRepository"]
