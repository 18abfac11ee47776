"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order, OrderStatusHistory
from modules.payments.constants import PaymentMethod

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class DeliveryAddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    zip_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=100)


class DeliveryAddressField(serializers.Field):
    """Accepts either a plain string or a structured address object."""

    default_error_messages = {
        "invalid": "Expected an address string or object.",
    }

    def to_internal_value(self, data):
        if isinstance(data, str):
            if not data.strip():
                self.fail("invalid")
            return data.strip()
        if isinstance(data, dict):
            nested = DeliveryAddressSerializer(data=data)
            nested.is_valid(raise_exception=True)
            return dict(nested.validated_data)
        self.fail("invalid")

    def to_representation(self, value):
        return value


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    contact_number = serializers.CharField(max_length=30)
    delivery_address = DeliveryAddressField()
    additional_notes = serializers.CharField(
        required=False, default="", allow_blank=True
    )
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)


class TransitionSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class SetStatusSerializer(TransitionSerializer):
    # Unknown statuses reach the service so they surface as a domain error.
    status = serializers.CharField(max_length=20)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "user_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for a single order."""

    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "buyer_id",
            "product_id",
            "product_name",
            "quantity",
            "unit_price",
            "total_price",
            "first_name",
            "last_name",
            "email",
            "contact_number",
            "delivery_address",
            "additional_notes",
            "payment_method",
            "payment_status",
            "payment_reference",
            "order_status",
            "approved_at",
            "rejected_at",
            "cancelled_at",
            "completed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for the order list."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "buyer_id",
            "product_id",
            "quantity",
            "total_price",
            "payment_status",
            "order_status",
            "created_at",
        ]
        read_only_fields = fields
