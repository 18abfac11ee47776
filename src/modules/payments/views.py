"""Payment API views.

The webhook endpoint is public: it has no authentication, no throttling
and reads the raw request body, because the gateway signature is computed
over the exact bytes sent.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import ViewSet

from modules.core.policies import Principal
from modules.orders.serializers import OrderSerializer
from modules.payments.gateway import build_payment_gateway
from modules.payments.serializers import (
    ConfirmPaymentSerializer,
    CreatePaymentIntentSerializer,
    PaymentIntentSerializer,
)
from modules.payments.services import build_payment_service


class PaymentViewSet(ViewSet):
    permission_classes = [IsAuthenticated]
    throttle_scope = "payments"

    @action(detail=False, methods=["post"], url_path="create-payment-intent")
    def create_payment_intent(self, request: Request) -> Response:
        """POST /api/v1/payments/create-payment-intent/"""
        serializer = CreatePaymentIntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with build_payment_gateway() as gateway:
            intent = build_payment_service(gateway).create_payment_intent(
                Principal.from_user(request.user),
                serializer.validated_data["order_id"],
            )
        return Response(PaymentIntentSerializer(intent).data)

    @action(detail=False, methods=["post"])
    def confirm(self, request: Request) -> Response:
        """POST /api/v1/payments/confirm/"""
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with build_payment_gateway() as gateway:
            order = build_payment_service(gateway).confirm_payment(
                Principal.from_user(request.user),
                serializer.validated_data["payment_intent_id"],
            )
        return Response(OrderSerializer(order).data)


class StripeWebhookView(APIView):
    """POST /api/v1/payments/webhook/"""

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_classes: list = []

    def post(self, request: Request) -> Response:
        signature = request.headers.get("Stripe-Signature")
        with build_payment_gateway() as gateway:
            outcome = build_payment_service(gateway).handle_webhook(
                request.body, signature
            )
        return Response(
            {"received": True, "outcome": str(outcome)}, status=status.HTTP_200_OK
        )
