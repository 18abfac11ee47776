"""Payment domain constants."""

from django.db import models


class PaymentMethod(models.TextChoices):
    CASH_ON_DELIVERY = "Cash on Delivery", "Cash on Delivery"
    STRIPE = "Stripe", "Stripe"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class GatewayEventType:
    """Stripe event types the webhook acts on."""

    SUCCEEDED = "payment_intent.succeeded"
    FAILED = "payment_intent.payment_failed"


GATEWAY_STATUS_SUCCEEDED = "succeeded"

# Payment status changes accepted from gateway signals.  ``paid`` is sticky:
# a failure signal never downgrades it.  Same-value writes are no-ops.
PAYMENT_STATUS_TRANSITIONS: dict[str, set[str]] = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PAID},
    PaymentStatus.PAID: set(),
    PaymentStatus.REFUNDED: set(),
}

PAYMENT_STATUS_MAX_RETRIES = 3


class PaymentEventOutcome(models.TextChoices):
    """What a processed gateway event did to the matching order."""

    APPLIED = "applied", "Applied"
    UNCHANGED = "unchanged", "Unchanged"
    IGNORED = "ignored", "Ignored"
    UNKNOWN_REFERENCE = "unknown_reference", "Unknown reference"
    UNHANDLED_TYPE = "unhandled_type", "Unhandled type"
