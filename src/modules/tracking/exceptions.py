"""Tracking domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import NotFoundError


class TrackingEventNotFound(NotFoundError):
    default_message = "Tracking not found."
