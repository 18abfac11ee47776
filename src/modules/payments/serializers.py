"""Payment DRF serializers."""

from __future__ import annotations

from rest_framework import serializers


class CreatePaymentIntentSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()


class ConfirmPaymentSerializer(serializers.Serializer):
    payment_intent_id = serializers.CharField(max_length=255)


class PaymentIntentSerializer(serializers.Serializer):
    """Output of intent creation: what the client needs to finish paying."""

    client_secret = serializers.CharField()
    payment_intent_id = serializers.CharField(source="reference")
