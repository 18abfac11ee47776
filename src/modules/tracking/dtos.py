"""Tracking DTOs for the Service Layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.tracking.constants import TrackingStatus


def _known_status(v: str) -> str:
    if v not in TrackingStatus.values:
        raise ValueError(f"Unknown tracking status {v!r}.")
    return v


class RecordTrackingDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    status: str
    location: str
    notes: str = ""
    images: List[str] = []
    estimated_completion_date: Optional[datetime] = None

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, v: str) -> str:
        return _known_status(v)


class UpdateTrackingDTO(BaseModel):
    """Correction of an existing checkpoint; ``None`` leaves a field as is."""

    model_config = ConfigDict(frozen=True)

    status: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    images: Optional[List[str]] = None
    estimated_completion_date: Optional[datetime] = None

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _known_status(v)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)
