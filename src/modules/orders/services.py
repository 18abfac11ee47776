"""Order service layer (Use Cases).

Orchestrates the order lifecycle state machine: creation with stock
reservation, approval, rejection, cancellation, the administrative status
override and the completion forced by a delivery tracking event.  All
write operations are atomic; the service defines the unit-of-work
boundary.

Business rules enforced:
- Role and ownership checks through the policy table, once per operation.
- Quantity within ``[minimum_order_quantity, available_quantity]`` and a
  payment method accepted by the product, checked against the product
  snapshot read at the start of creation.
- Stock reservation through the inventory ledger (conditional decrement).
- Approve, reject and cancel validated against ``VALID_TRANSITIONS``; the
  administrative override and delivery completion bypass the table but
  never leave a terminal status.
- Every transition written with a conditional update guarded by the
  status read; no blind overwrite.
- Rejected and cancelled orders release their reservation exactly once.
- Status timestamps stamped once, never reset.
- History recorded on every status change.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.core.policies import Action, authorize, is_allowed
from modules.orders.constants import (
    RELEASING_STATES,
    STATUS_TIMESTAMP_FIELDS,
    OrderStatus,
)
from modules.orders.events import (
    OrderApproved,
    OrderCancelled,
    OrderCompleted,
    OrderCreated,
    OrderRejected,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    InvalidOrderQuantity,
    InvalidOrderStatus,
    OrderModified,
    OrderNotFound,
    PaymentMethodNotAllowed,
    UnknownOrderStatus,
)
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.core.policies import Principal
    from modules.inventory.services import InventoryLedger
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order, OrderStatusHistory
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the inventory ledger via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        ledger: InventoryLedger,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._ledger = ledger

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, principal: Principal, dto: CreateOrderDTO) -> Order:
        """Create a ``pending`` order and reserve its stock.

        Raises:
            AuthorizationError: caller is not an approved buyer.
            ProductNotFound: product does not exist.
            InvalidOrderQuantity: quantity outside the product limits.
            PaymentMethodNotAllowed: product does not accept the method.
            InsufficientStock: a concurrent order took the stock first.
        """
        authorize(principal, Action.ORDER_CREATE)

        log = logger.bind(buyer_id=str(principal.id), product_id=str(dto.product_id))
        log.info("order.creation_started", quantity=dto.quantity)

        product = self._product_repo.get_by_id(str(dto.product_id))
        if not product:
            raise ProductNotFound()

        if dto.quantity < product.minimum_order_quantity:
            raise InvalidOrderQuantity(
                f"Minimum order quantity is {product.minimum_order_quantity}."
            )
        if dto.quantity > product.available_quantity:
            raise InvalidOrderQuantity(
                f"Only {product.available_quantity} items available."
            )
        if not product.accepts_payment_method(dto.payment_method):
            raise PaymentMethodNotAllowed(
                "This product only supports: "
                f"{', '.join(product.payment_options)}."
            )

        self._ledger.reserve(product.id, dto.quantity)

        order = self._order_repo.create(
            {
                "buyer_id": principal.id,
                "product_id": product.id,
                "quantity": dto.quantity,
                "unit_price": product.price,
                "first_name": dto.first_name,
                "last_name": dto.last_name,
                "email": dto.email or "",
                "contact_number": dto.contact_number,
                "delivery_address": dto.formatted_address,
                "additional_notes": dto.additional_notes,
                "payment_method": dto.payment_method,
            }
        )
        self._ledger.record(order)

        self._order_repo.add_history(
            order_id=order.id,
            old_status=None,
            new_status=OrderStatus.PENDING,
            user_id=principal.id,
            notes="Order created",
        )
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                buyer_id=str(principal.id),
                product_id=str(product.id),
                quantity=order.quantity,
                total_price=str(order.total_price),
            )
        )
        self._order_repo.store_domain_events(order)

        log.info("order.created", order_id=str(order.id))
        return self._reload(order.id)

    @transaction.atomic
    def approve_order(
        self, principal: Principal, order_id: UUID, notes: str = ""
    ) -> Order:
        """Approve a pending order and commit its reservation.

        Raises:
            AuthorizationError: caller is not a manager or admin.
            OrderNotFound: order does not exist.
            InvalidOrderStatus: order is not pending.
            OrderModified: status changed concurrently.
        """
        authorize(principal, Action.ORDER_APPROVE)
        order = self._get_or_raise(order_id)
        self._require_transition(order, OrderStatus.APPROVED, "approve")

        self._apply_transition(order, OrderStatus.APPROVED, principal.id, notes)
        self._ledger.commit(order)
        return self._reload(order.id)

    @transaction.atomic
    def reject_order(
        self, principal: Principal, order_id: UUID, notes: str = ""
    ) -> Order:
        """Reject a pending order and release its reservation."""
        authorize(principal, Action.ORDER_REJECT)
        order = self._get_or_raise(order_id)
        self._require_transition(order, OrderStatus.REJECTED, "reject")

        self._apply_transition(order, OrderStatus.REJECTED, principal.id, notes)
        return self._reload(order.id)

    @transaction.atomic
    def cancel_order(
        self, principal: Principal, order_id: UUID, notes: str = ""
    ) -> Order:
        """Cancel the caller's own pending order and release its reservation.

        Raises:
            OrderNotFound: order does not exist.
            AuthorizationError: caller does not own the order.
            InvalidOrderStatus: order is not pending.
        """
        order = self._get_or_raise(order_id)
        authorize(principal, Action.ORDER_CANCEL, owner_id=order.buyer_id)
        self._require_transition(order, OrderStatus.CANCELLED, "cancel")

        self._apply_transition(order, OrderStatus.CANCELLED, principal.id, notes)
        return self._reload(order.id)

    @transaction.atomic
    def set_status(
        self,
        principal: Principal,
        order_id: UUID,
        new_status: str,
        notes: str = "",
    ) -> Order:
        """Administrative override from any non-terminal status.

        ``rejected`` and ``cancelled`` release the reservation through the
        same ledger operation as reject/cancel; ``approved`` commits it.

        Raises:
            UnknownOrderStatus: *new_status* is not an order status.
            InvalidOrderStatus: order is terminal or already in *new_status*.
        """
        authorize(principal, Action.ORDER_SET_STATUS)
        if new_status not in OrderStatus.values:
            raise UnknownOrderStatus(f"Invalid order status {new_status!r}.")

        order = self._get_or_raise(order_id)
        if order.is_terminal:
            raise InvalidOrderStatus(
                f"Cannot change status of a {order.order_status} order."
            )
        if order.order_status == new_status:
            raise InvalidOrderStatus(f"Order is already {new_status}.")

        self._apply_transition(order, new_status, principal.id, notes)
        if new_status == OrderStatus.APPROVED:
            self._ledger.commit(order)
        return self._reload(order.id)

    @transaction.atomic
    def complete_from_delivery(
        self, order_id: UUID, actor_id: Optional[UUID] = None
    ) -> Order:
        """Force ``completed`` after a delivery checkpoint.

        Bypasses ``VALID_TRANSITIONS``: delivery means completion from any
        non-terminal status.  Already completed orders are left alone;
        rejected or cancelled orders stay terminal.
        """
        order = self._get_or_raise(order_id)
        log = logger.bind(order_id=str(order.id), current_status=order.order_status)

        if order.order_status == OrderStatus.COMPLETED:
            log.info("order.delivery_already_completed")
            return order
        if order.order_status in RELEASING_STATES:
            log.warning("order.delivery_completion_skipped")
            return order

        self._apply_transition(
            order,
            OrderStatus.COMPLETED,
            actor_id,
            "Completed by delivery tracking event",
            source="tracking",
        )
        return self._reload(order.id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, principal: Principal, order_id: Any) -> Order:
        """Retrieve a single order visible to *principal*.

        Raises:
            OrderNotFound: if the order does not exist.
            AuthorizationError: buyer asking for someone else's order.
        """
        order = self._get_or_raise(order_id)
        authorize(principal, Action.ORDER_VIEW, owner_id=order.buyer_id)
        return order

    def list_orders(
        self, principal: Principal, filters: Optional[Dict[str, Any]] = None
    ) -> QuerySet:
        """All orders for staff; a buyer only sees their own."""
        if is_allowed(principal, Action.ORDER_LIST_ALL):
            return self._order_repo.list(filters)
        authorize(principal, Action.ORDER_LIST_OWN)
        return self._order_repo.list(filters, buyer_id=principal.id)

    def get_history(
        self, principal: Principal, order_id: Any
    ) -> List[OrderStatusHistory]:
        order = self.get_order(principal, order_id)
        return self._order_repo.history(order.id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_or_raise(self, order_id: Any) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _reload(self, order_id: UUID) -> Order:
        return self._get_or_raise(order_id)

    @staticmethod
    def _require_transition(order: Order, new_status: str, verb: str) -> None:
        if not order.can_transition_to(new_status):
            logger.warning(
                "order.invalid_transition",
                order_id=str(order.id),
                current_status=order.order_status,
                attempted=verb,
            )
            raise InvalidOrderStatus(
                f"Cannot {verb} order in status {order.order_status}."
            )

    def _apply_transition(
        self,
        order: Order,
        new_status: str,
        actor_id: Optional[UUID],
        notes: str = "",
        source: str = "manual",
    ) -> None:
        """Conditionally write *new_status* and run its side effects.

        The write only lands if the persisted status still equals the one
        read into *order*; otherwise ``OrderModified`` aborts the whole
        transaction, including any stock movement.
        """
        old_status = order.order_status
        log = logger.bind(
            order_id=str(order.id), old_status=old_status, new_status=new_status
        )

        stamps = {}
        stamp_field = STATUS_TIMESTAMP_FIELDS.get(new_status)
        if stamp_field and getattr(order, stamp_field) is None:
            stamps[stamp_field] = timezone.now()

        if not self._order_repo.transition(order.id, old_status, new_status, stamps):
            log.warning("order.concurrent_modification")
            raise OrderModified()

        order.order_status = new_status
        for field, value in stamps.items():
            setattr(order, field, value)

        released = False
        if new_status in RELEASING_STATES:
            released = self._ledger.release(order)

        self._order_repo.add_history(
            order_id=order.id,
            old_status=old_status,
            new_status=new_status,
            user_id=actor_id,
            notes=notes,
        )

        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id, old_status=old_status, new_status=new_status
            )
        )
        if new_status == OrderStatus.APPROVED:
            order.add_domain_event(OrderApproved(aggregate_id=order.id))
        elif new_status == OrderStatus.REJECTED:
            order.add_domain_event(OrderRejected(aggregate_id=order.id, released=released))
        elif new_status == OrderStatus.CANCELLED:
            order.add_domain_event(
                OrderCancelled(aggregate_id=order.id, released=released)
            )
        elif new_status == OrderStatus.COMPLETED:
            order.add_domain_event(OrderCompleted(aggregate_id=order.id, source=source))
        self._order_repo.store_domain_events(order)

        log.info("order.status_updated", released=released, source=source)


def build_order_service() -> OrderService:
    """Wire ``OrderService`` with the Django repositories."""
    from modules.inventory.services import build_inventory_ledger
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.products.repositories.django_repository import (
        ProductDjangoRepository,
    )

    product_repository = ProductDjangoRepository()
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=product_repository,
        ledger=build_inventory_ledger(product_repository=product_repository),
    )
