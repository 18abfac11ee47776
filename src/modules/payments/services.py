"""Payment reconciliation service.

Two ingress paths write ``Order.payment_status``: the synchronous confirm
call and the asynchronous gateway webhook.  Both funnel into
``_apply_payment_status``, which writes conditionally on the value it read
and re-evaluates against the fresh value on contention, so the signals
commute:

* ``paid`` is sticky: a failure signal never downgrades it.
* ``failed -> paid`` is allowed (a retried payment succeeded).
* writing the value already stored is a no-op.

Webhook events are verified before anything else and logged by event id
so a redelivery is acknowledged without being applied twice.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any

import structlog
from django.conf import settings
from django.db import transaction

from modules.core.exceptions import (
    ConflictError,
    PaymentNotCompleteError,
    StateError,
    ValidationError,
)
from modules.core.policies import Action, authorize
from modules.orders.constants import OrderStatus
from modules.orders.exceptions import OrderNotFound
from modules.payments.constants import (
    GATEWAY_STATUS_SUCCEEDED,
    PAYMENT_STATUS_MAX_RETRIES,
    PAYMENT_STATUS_TRANSITIONS,
    GatewayEventType,
    PaymentEventOutcome,
    PaymentMethod,
    PaymentStatus,
)
from modules.payments.events import PaymentStatusChanged
from shared.infrastructure.outbox import store_events

if TYPE_CHECKING:
    from modules.core.policies import Principal
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.gateway import GatewayEvent, GatewayIntent, IPaymentGateway
    from modules.payments.repositories.interfaces import IPaymentEventRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "payments"

_EVENT_TARGETS = {
    GatewayEventType.SUCCEEDED: PaymentStatus.PAID,
    GatewayEventType.FAILED: PaymentStatus.FAILED,
}


def to_minor_units(amount: Decimal) -> int:
    """``12.345`` -> ``1235``; gateways take integer cents."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:
    """Application service for payment use-cases."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        event_repository: IPaymentEventRepository,
        gateway: IPaymentGateway,
    ) -> None:
        self._order_repo = order_repository
        self._event_repo = event_repository
        self._gateway = gateway

    # ------------------------------------------------------------------
    # Create intent
    # ------------------------------------------------------------------

    def create_payment_intent(self, principal: Principal, order_id: Any) -> GatewayIntent:
        """Open a gateway payment for the caller's pending order.

        The gateway call happens outside any database transaction; the
        reference is then attached with a conditional write that refuses
        to touch an order that was paid, rejected or cancelled in
        the meantime.

        Raises:
            OrderNotFound: order does not exist.
            AuthorizationError: caller does not own the order.
            StateError: order is not pending or is already paid.
            ValidationError: order is not payable through the gateway.
            UpstreamError: gateway failure.
        """
        order = self._get_or_raise(order_id)
        authorize(principal, Action.PAYMENT_CREATE_INTENT, owner_id=order.buyer_id)

        if order.order_status != OrderStatus.PENDING:
            raise StateError("Order is not in pending status.")
        if order.payment_method != PaymentMethod.STRIPE:
            raise ValidationError(
                f"Order is paid by {order.payment_method}, not through the gateway."
            )
        if order.payment_status == PaymentStatus.PAID:
            raise StateError("Order is already paid.")

        log = logger.bind(order_id=str(order.id), buyer_id=str(principal.id))
        amount = to_minor_units(order.total_price)
        intent = self._gateway.create_payment_intent(
            amount_minor=amount,
            currency=settings.PAYMENT_CURRENCY,
            metadata={"order_id": str(order.id), "user_id": str(principal.id)},
        )

        if not self._order_repo.set_payment_reference(order.id, intent.reference):
            log.warning("payment.reference_not_attached", reference=intent.reference)
            raise StateError("Order is no longer pending and unpaid.")

        log.info("payment.intent_created", reference=intent.reference, amount=amount)
        return intent

    # ------------------------------------------------------------------
    # Synchronous confirm
    # ------------------------------------------------------------------

    def confirm_payment(self, principal: Principal, reference: str) -> Order:
        """Mark the order paid once the gateway reports success.

        Raises:
            OrderNotFound: no order carries *reference*.
            AuthorizationError: caller does not own the order.
            PaymentNotCompleteError: gateway status is not ``succeeded``.
        """
        order = self._order_repo.get_by_payment_reference(reference)
        if order is None:
            raise OrderNotFound()
        authorize(principal, Action.PAYMENT_CONFIRM, owner_id=order.buyer_id)

        gateway_status = self._gateway.retrieve_status(reference)
        log = logger.bind(
            order_id=str(order.id), reference=reference, gateway_status=gateway_status
        )
        if gateway_status != GATEWAY_STATUS_SUCCEEDED:
            log.info("payment.confirm_not_complete")
            raise PaymentNotCompleteError()

        with transaction.atomic():
            outcome = self._apply_payment_status(
                order, PaymentStatus.PAID, reference, source="confirm"
            )
        log.info("payment.confirmed", outcome=outcome)
        return self._get_or_raise(order.id)

    # ------------------------------------------------------------------
    # Webhook
    # ------------------------------------------------------------------

    def handle_webhook(self, payload: bytes, signature: str | None) -> str:
        """Verify and apply one gateway event.  Returns the outcome.

        Unknown references and unhandled event types are acknowledged
        (logged, recorded, no state change) so the gateway stops retrying.

        Raises:
            SignatureError: signature missing or invalid; nothing applied.
            ValidationError: body is not valid JSON.
        """
        event = self._gateway.construct_event(payload, signature)
        log = logger.bind(
            event_id=event.id, event_type=event.type, reference=event.reference
        )

        with transaction.atomic():
            entry = self._event_repo.claim(
                event_id=event.id,
                event_type=event.type,
                reference=event.reference,
                payload=event.data,
            )
            if entry is None:
                log.info("payment.webhook_duplicate")
                return "duplicate"

            outcome = self._process_event(event)
            self._event_repo.set_outcome(entry, outcome)

        log.info("payment.webhook_processed", outcome=outcome)
        return outcome

    def _process_event(self, event: GatewayEvent) -> str:
        target = _EVENT_TARGETS.get(event.type)
        if target is None:
            logger.info("payment.webhook_ignored", event_type=event.type)
            return PaymentEventOutcome.UNHANDLED_TYPE

        order = self._order_repo.get_by_payment_reference(event.reference)
        if order is None:
            logger.warning(
                "payment.webhook_unknown_reference",
                event_id=event.id,
                reference=event.reference,
            )
            return PaymentEventOutcome.UNKNOWN_REFERENCE

        return self._apply_payment_status(
            order, target, event.reference, source="webhook"
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_or_raise(self, order_id: Any) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            raise OrderNotFound()
        return order

    def _apply_payment_status(
        self, order: Order, target: str, reference: str, source: str
    ) -> str:
        """Move ``payment_status`` to *target* if the policy allows it.

        Must run inside a transaction; the outbox event is written with the
        status change.
        """
        log = logger.bind(order_id=str(order.id), target=target, source=source)
        current = order.payment_status

        for attempt in range(PAYMENT_STATUS_MAX_RETRIES):
            if current == target:
                log.info("payment.status_unchanged")
                return PaymentEventOutcome.UNCHANGED
            if target not in PAYMENT_STATUS_TRANSITIONS.get(current, set()):
                log.info("payment.status_ignored", current=current)
                return PaymentEventOutcome.IGNORED

            if self._order_repo.update_payment_status(order.id, current, target):
                store_events(
                    [
                        PaymentStatusChanged(
                            aggregate_id=order.id,
                            old_status=current,
                            new_status=target,
                            reference=reference,
                            source=source,
                        )
                    ],
                    topic=OUTBOX_TOPIC,
                )
                log.info("payment.status_updated", old_status=current)
                return PaymentEventOutcome.APPLIED

            current = self._order_repo.get_payment_status(order.id)
            log.info("payment.status_contention", attempt=attempt + 1, fresh=current)

        log.warning("payment.status_retries_exhausted")
        raise ConflictError("Payment status kept changing, please retry.")


def build_payment_service(gateway: IPaymentGateway) -> PaymentService:
    """Wire ``PaymentService`` with the Django repositories and *gateway*."""
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.payments.repositories.django_repository import (
        PaymentEventDjangoRepository,
    )

    return PaymentService(
        order_repository=OrderDjangoRepository(),
        event_repository=PaymentEventDjangoRepository(),
        gateway=gateway,
    )
