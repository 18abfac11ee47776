"""Payment gateway port and its Stripe adapter.

``IPaymentGateway`` is the only surface the payment service talks to.
``StripePaymentGateway`` owns one ``stripe.StripeClient`` configured with a
bounded timeout and retry budget; use it as a context manager (or call
``close()``) so the underlying HTTP session is released.

Error mapping:
* ``stripe.SignatureVerificationError`` -> ``SignatureError``
* malformed webhook body (``ValueError``) -> ``ValidationError``
* any other ``stripe.StripeError`` -> ``UpstreamError``
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import stripe
import structlog
from django.conf import settings
from django.utils.module_loading import import_string

from modules.core.exceptions import SignatureError, UpstreamError, ValidationError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GatewayIntent:
    reference: str
    client_secret: str


@dataclass(frozen=True)
class GatewayEvent:
    """A verified webhook event, reduced to what reconciliation needs."""

    id: str
    type: str
    reference: str
    data: Dict[str, Any] = field(default_factory=dict)


class IPaymentGateway(ABC):
    """Port to the external payment provider."""

    @abstractmethod
    def create_payment_intent(
        self, amount_minor: int, currency: str, metadata: Dict[str, str]
    ) -> GatewayIntent:
        """Create a payment attempt and return its reference and client secret."""

    @abstractmethod
    def retrieve_status(self, reference: str) -> str:
        """Authoritative status of the payment identified by *reference*."""

    @abstractmethod
    def construct_event(self, payload: bytes, signature: Optional[str]) -> GatewayEvent:
        """Verify *signature* over the raw *payload*, then parse it."""

    def close(self) -> None:
        """Release network resources held by the gateway."""

    def __enter__(self) -> IPaymentGateway:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class StripePaymentGateway(IPaymentGateway):
    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        timeout: int = 10,
        max_retries: int = 2,
    ) -> None:
        self._webhook_secret = webhook_secret
        self._http_client = stripe.new_default_http_client(timeout=timeout)
        self._client = stripe.StripeClient(
            api_key,
            http_client=self._http_client,
            max_network_retries=max_retries,
        )

    def create_payment_intent(
        self, amount_minor: int, currency: str, metadata: Dict[str, str]
    ) -> GatewayIntent:
        try:
            intent = self._client.payment_intents.create(
                params={
                    "amount": amount_minor,
                    "currency": currency,
                    "metadata": metadata,
                }
            )
        except stripe.StripeError as exc:
            logger.error(
                "payment.gateway_error",
                operation="create_payment_intent",
                error=str(exc),
            )
            raise UpstreamError("Payment gateway error.") from exc
        return GatewayIntent(reference=intent.id, client_secret=intent.client_secret)

    def retrieve_status(self, reference: str) -> str:
        try:
            intent = self._client.payment_intents.retrieve(reference)
        except stripe.InvalidRequestError as exc:
            logger.warning("payment.gateway_unknown_reference", reference=reference)
            raise ValidationError("Unknown payment intent.") from exc
        except stripe.StripeError as exc:
            logger.error(
                "payment.gateway_error",
                operation="retrieve_status",
                reference=reference,
                error=str(exc),
            )
            raise UpstreamError("Payment gateway error.") from exc
        return intent.status

    def construct_event(self, payload: bytes, signature: Optional[str]) -> GatewayEvent:
        if not signature:
            raise SignatureError("Missing Stripe-Signature header.")
        try:
            event = stripe.Webhook.construct_event(
                payload, signature, self._webhook_secret
            )
        except stripe.SignatureVerificationError as exc:
            logger.warning("payment.webhook_signature_invalid", error=str(exc))
            raise SignatureError() from exc
        except ValueError as exc:
            raise ValidationError("Malformed webhook payload.") from exc

        data = json.loads(payload)
        obj = data.get("data", {}).get("object", {}) or {}
        return GatewayEvent(
            id=event["id"],
            type=event["type"],
            reference=obj.get("id", "") if isinstance(obj, dict) else "",
            data=data,
        )

    def close(self) -> None:
        self._http_client.close()


def build_payment_gateway() -> IPaymentGateway:
    """Instantiate the gateway named by ``PAYMENT_GATEWAY_CLASS``."""
    gateway_class = import_string(settings.PAYMENT_GATEWAY_CLASS)
    return gateway_class(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        timeout=settings.PAYMENT_GATEWAY_TIMEOUT,
        max_retries=settings.PAYMENT_GATEWAY_MAX_RETRIES,
    )
