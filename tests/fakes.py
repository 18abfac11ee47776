"""In-memory payment gateway used by the test settings.

Subclasses the Stripe adapter so webhook signature verification stays
real; only the two network calls are replaced.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from typing import Any, Dict, List, Optional
from uuid import uuid4

from modules.core.exceptions import ValidationError
from modules.payments.gateway import GatewayIntent, StripePaymentGateway

WEBHOOK_SECRET = "whsec_test_secret"


class FakePaymentGateway(StripePaymentGateway):
    """Intent statuses live on the class so every request sees them."""

    intents: Dict[str, str] = {}
    created: List[Dict[str, Any]] = []

    def create_payment_intent(
        self, amount_minor: int, currency: str, metadata: Dict[str, str]
    ) -> GatewayIntent:
        reference = f"pi_test{uuid4().hex[:20]}"
        FakePaymentGateway.intents[reference] = "requires_payment_method"
        FakePaymentGateway.created.append(
            {
                "reference": reference,
                "amount": amount_minor,
                "currency": currency,
                "metadata": dict(metadata),
            }
        )
        return GatewayIntent(
            reference=reference,
            client_secret=f"{reference}_secret_{uuid4().hex[:12]}",
        )

    def retrieve_status(self, reference: str) -> str:
        if reference not in FakePaymentGateway.intents:
            raise ValidationError("Unknown payment intent.")
        return FakePaymentGateway.intents[reference]

    @classmethod
    def set_status(cls, reference: str, status: str) -> None:
        cls.intents[reference] = status

    @classmethod
    def reset(cls) -> None:
        cls.intents.clear()
        cls.created.clear()


def stripe_event(
    event_type: str, reference: str, event_id: Optional[str] = None
) -> bytes:
    """Serialized webhook body shaped like a Stripe event."""
    return json.dumps(
        {
            "id": event_id or f"evt_{uuid4().hex[:24]}",
            "object": "event",
            "type": event_type,
            "data": {"object": {"id": reference, "object": "payment_intent"}},
        }
    ).encode()


def sign_payload(
    payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None
) -> str:
    """``Stripe-Signature`` header value for *payload*."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload.decode()}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"
