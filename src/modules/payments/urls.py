"""Payment URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import SimpleRouter

from modules.payments.views import PaymentViewSet, StripeWebhookView

router = SimpleRouter(trailing_slash=True)
router.register("payments", PaymentViewSet, basename="payment")

urlpatterns = [
    path("payments/webhook/", StripeWebhookView.as_view(), name="payment-webhook"),
    *router.urls,
]
