"""Tracking URL configuration."""

from __future__ import annotations

from rest_framework.routers import SimpleRouter

from modules.tracking.views import TrackingViewSet

router = SimpleRouter(trailing_slash=True)
router.register("tracking", TrackingViewSet, basename="tracking")

urlpatterns = router.urls
