"""Unit tests for OrderService.

Covers:
- Creation: quantity limits, payment method, stock reservation, price snapshot.
- Approve / reject / cancel with role and ownership checks.
- Administrative status override.
- Completion forced by delivery.
- Release-once and the stamp-once rule for status timestamps.
- Lost race between read and conditional write.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.core.exceptions import AuthorizationError, ConflictError, StateError
from modules.core.models import OutboxEvent
from modules.core.policies import Principal
from modules.inventory.exceptions import StockReleaseFailed
from modules.inventory.models import StockReservation
from modules.inventory.services import build_inventory_ledger
from modules.orders.constants import VALID_TRANSITIONS, OrderStatus
from modules.orders.exceptions import (
    InvalidOrderQuantity,
    InvalidOrderStatus,
    OrderModified,
    OrderNotFound,
    PaymentMethodNotAllowed,
    UnknownOrderStatus,
)
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.payments.constants import PaymentMethod, PaymentStatus
from modules.products.exceptions import ProductNotFound
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


def _stock(product) -> int:
    product.refresh_from_db()
    return product.available_quantity


def _event_types(order) -> list:
    return list(
        OutboxEvent.objects.filter(aggregate_id=str(order.id))
        .order_by("created_at")
        .values_list("event_type", flat=True)
    )


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


class TestCreateOrder:
    def test_reserves_stock_and_snapshots_price(self, pending_order, product):
        assert pending_order.order_status == OrderStatus.PENDING
        assert pending_order.payment_status == PaymentStatus.PENDING
        assert pending_order.unit_price == Decimal("10.00")
        assert pending_order.total_price == Decimal("50.00")
        assert _stock(product) == 5

    def test_records_reservation_history_and_event(self, pending_order):
        reservation = StockReservation.objects.get(order_id=pending_order.id)
        assert reservation.quantity == 5
        assert reservation.released_at is None

        history = OrderStatusHistory.objects.get(order_id=pending_order.id)
        assert history.old_status is None
        assert history.new_status == OrderStatus.PENDING

        assert _event_types(pending_order) == ["OrderCreated"]

    def test_price_change_does_not_touch_existing_order(self, pending_order, product):
        Product.objects.filter(id=product.id).update(price=Decimal("99.00"))
        pending_order.refresh_from_db()
        assert pending_order.total_price == Decimal("50.00")

    def test_below_minimum_is_rejected(self, order_service, buyer_principal, create_dto, product):
        with pytest.raises(InvalidOrderQuantity, match="Minimum order quantity is 2."):
            order_service.create_order(buyer_principal, create_dto(quantity=1))
        assert _stock(product) == 10

    def test_above_stock_is_rejected(self, order_service, buyer_principal, create_dto):
        with pytest.raises(InvalidOrderQuantity, match="Only 10 items available."):
            order_service.create_order(buyer_principal, create_dto(quantity=11))

    def test_whole_stock_can_be_ordered(self, order_service, buyer_principal, create_dto, product):
        order_service.create_order(buyer_principal, create_dto(quantity=10))
        assert _stock(product) == 0

    def test_payment_method_must_be_accepted(
        self, order_service, buyer_principal, create_dto, product
    ):
        Product.objects.filter(id=product.id).update(
            payment_options=[PaymentMethod.CASH_ON_DELIVERY.value]
        )
        with pytest.raises(PaymentMethodNotAllowed, match="Cash on Delivery"):
            order_service.create_order(buyer_principal, create_dto())
        assert _stock(product) == 10

    def test_unknown_product(self, order_service, buyer_principal, create_dto):
        with pytest.raises(ProductNotFound):
            order_service.create_order(buyer_principal, create_dto(product_id=uuid4()))

    def test_manager_cannot_place_orders(self, order_service, manager_principal, create_dto):
        with pytest.raises(AuthorizationError):
            order_service.create_order(manager_principal, create_dto())

    def test_unapproved_buyer_cannot_place_orders(
        self, order_service, pending_buyer, create_dto, product
    ):
        with pytest.raises(AuthorizationError, match="not approved"):
            order_service.create_order(Principal.from_user(pending_buyer), create_dto())
        assert _stock(product) == 10

    def test_contact_details_are_copied(self, pending_order, buyer):
        assert pending_order.buyer_id == buyer.id
        assert pending_order.email == "ada@example.com"
        assert pending_order.buyer_name == "Ada Lovelace"
        assert pending_order.delivery_address.startswith("1 Main St")


# ---------------------------------------------------------------------------
# Approve / reject
# ---------------------------------------------------------------------------


class TestApproveReject:
    def test_approve_commits_reservation(
        self, order_service, manager_principal, pending_order, product
    ):
        order = order_service.approve_order(manager_principal, pending_order.id)

        assert order.order_status == OrderStatus.APPROVED
        assert order.approved_at is not None
        assert _stock(product) == 5
        reservation = StockReservation.objects.get(order_id=order.id)
        assert reservation.committed_at is not None
        assert "OrderApproved" in _event_types(order)
        assert "OrderStatusChanged" in _event_types(order)

    def test_reject_releases_stock(self, order_service, manager_principal, pending_order, product):
        order = order_service.reject_order(
            manager_principal, pending_order.id, notes="Out of fabric"
        )

        assert order.order_status == OrderStatus.REJECTED
        assert order.rejected_at is not None
        assert _stock(product) == 10
        last = OrderStatusHistory.objects.filter(order_id=order.id).last()
        assert last.notes == "Out of fabric"
        rejected = OutboxEvent.objects.get(
            aggregate_id=str(order.id), event_type="OrderRejected"
        )
        assert rejected.payload["released"] is True

    def test_reject_without_reservation_rolls_back(
        self, order_service, manager_principal, pending_order, product
    ):
        StockReservation.objects.filter(order_id=pending_order.id).delete()
        with pytest.raises(StockReleaseFailed):
            order_service.reject_order(manager_principal, pending_order.id)

        pending_order.refresh_from_db()
        assert pending_order.order_status == OrderStatus.PENDING
        assert _stock(product) == 5
        assert not OutboxEvent.objects.filter(event_type="OrderRejected").exists()

    def test_rejected_order_cannot_be_approved(
        self, order_service, manager_principal, pending_order
    ):
        order_service.reject_order(manager_principal, pending_order.id)
        with pytest.raises(StateError):
            order_service.approve_order(manager_principal, pending_order.id)

    def test_approved_order_cannot_be_rejected(
        self, order_service, manager_principal, pending_order, product
    ):
        order_service.approve_order(manager_principal, pending_order.id)
        with pytest.raises(InvalidOrderStatus, match="Cannot reject order in status approved."):
            order_service.reject_order(manager_principal, pending_order.id)
        assert _stock(product) == 5

    def test_admin_can_approve(self, order_service, admin_user, pending_order):
        order = order_service.approve_order(Principal.from_user(admin_user), pending_order.id)
        assert order.order_status == OrderStatus.APPROVED

    def test_buyer_cannot_approve(self, order_service, buyer_principal, pending_order):
        with pytest.raises(AuthorizationError, match="Only managers can approve orders."):
            order_service.approve_order(buyer_principal, pending_order.id)

    def test_unknown_order(self, order_service, manager_principal):
        with pytest.raises(OrderNotFound):
            order_service.approve_order(manager_principal, uuid4())


# ---------------------------------------------------------------------------
# Cancel
# ---------------------------------------------------------------------------


class TestCancel:
    def test_owner_cancels_pending_order(
        self, order_service, buyer_principal, pending_order, product
    ):
        order = order_service.cancel_order(buyer_principal, pending_order.id)
        assert order.order_status == OrderStatus.CANCELLED
        assert order.cancelled_at is not None
        assert _stock(product) == 10

    def test_other_buyer_cannot_cancel(self, order_service, other_buyer, pending_order, product):
        with pytest.raises(AuthorizationError):
            order_service.cancel_order(Principal.from_user(other_buyer), pending_order.id)
        assert _stock(product) == 5

    def test_manager_cannot_cancel(self, order_service, manager_principal, pending_order):
        with pytest.raises(AuthorizationError):
            order_service.cancel_order(manager_principal, pending_order.id)

    def test_approved_order_cannot_be_cancelled(
        self, order_service, buyer_principal, manager_principal, pending_order
    ):
        order_service.approve_order(manager_principal, pending_order.id)
        with pytest.raises(InvalidOrderStatus):
            order_service.cancel_order(buyer_principal, pending_order.id)

    def test_cancel_twice_releases_once(
        self, order_service, buyer_principal, pending_order, product
    ):
        order_service.cancel_order(buyer_principal, pending_order.id)
        with pytest.raises(InvalidOrderStatus):
            order_service.cancel_order(buyer_principal, pending_order.id)
        assert _stock(product) == 10

    def test_transition_table_decides_what_is_allowed(
        self, monkeypatch, order_service, buyer_principal, pending_order, product
    ):
        monkeypatch.setitem(
            VALID_TRANSITIONS,
            OrderStatus.PENDING,
            {OrderStatus.APPROVED, OrderStatus.REJECTED},
        )

        with pytest.raises(InvalidOrderStatus, match="Cannot cancel order in status pending"):
            order_service.cancel_order(buyer_principal, pending_order.id)

        assert _stock(product) == 5
        pending_order.refresh_from_db()
        assert pending_order.order_status == OrderStatus.PENDING


# ---------------------------------------------------------------------------
# Administrative override
# ---------------------------------------------------------------------------


class TestSetStatus:
    def test_unknown_status(self, order_service, manager_principal, pending_order):
        with pytest.raises(UnknownOrderStatus, match="shipped"):
            order_service.set_status(manager_principal, pending_order.id, "shipped")

    def test_same_status_is_rejected(self, order_service, manager_principal, pending_order):
        with pytest.raises(InvalidOrderStatus, match="already pending"):
            order_service.set_status(manager_principal, pending_order.id, OrderStatus.PENDING)

    def test_terminal_order_cannot_change(
        self, order_service, manager_principal, pending_order
    ):
        order_service.reject_order(manager_principal, pending_order.id)
        with pytest.raises(InvalidOrderStatus, match="rejected"):
            order_service.set_status(
                manager_principal, pending_order.id, OrderStatus.APPROVED
            )

    def test_buyer_cannot_override(self, order_service, buyer_principal, pending_order):
        with pytest.raises(AuthorizationError):
            order_service.set_status(
                buyer_principal, pending_order.id, OrderStatus.APPROVED
            )

    def test_override_to_approved_commits(
        self, order_service, manager_principal, pending_order
    ):
        order_service.set_status(manager_principal, pending_order.id, OrderStatus.APPROVED)
        reservation = StockReservation.objects.get(order_id=pending_order.id)
        assert reservation.committed_at is not None

    def test_override_to_cancelled_from_production_releases(
        self, order_service, manager_principal, pending_order, product
    ):
        order_service.approve_order(manager_principal, pending_order.id)
        order_service.set_status(
            manager_principal, pending_order.id, OrderStatus.IN_PRODUCTION
        )
        order = order_service.set_status(
            manager_principal, pending_order.id, OrderStatus.CANCELLED
        )
        assert order.order_status == OrderStatus.CANCELLED
        assert _stock(product) == 10

    def test_timestamps_are_stamped_once(
        self, order_service, manager_principal, pending_order
    ):
        approved = order_service.approve_order(manager_principal, pending_order.id)
        first_stamp = approved.approved_at

        order_service.set_status(
            manager_principal, pending_order.id, OrderStatus.IN_PRODUCTION
        )
        again = order_service.set_status(
            manager_principal, pending_order.id, OrderStatus.APPROVED
        )
        assert again.approved_at == first_stamp

    def test_every_change_is_in_history(
        self, order_service, manager_principal, pending_order
    ):
        order_service.approve_order(manager_principal, pending_order.id)
        order_service.set_status(
            manager_principal, pending_order.id, OrderStatus.IN_PRODUCTION
        )
        history = order_service.get_history(manager_principal, pending_order.id)
        assert [(h.old_status, h.new_status) for h in history] == [
            (None, OrderStatus.PENDING),
            (OrderStatus.PENDING, OrderStatus.APPROVED),
            (OrderStatus.APPROVED, OrderStatus.IN_PRODUCTION),
        ]


# ---------------------------------------------------------------------------
# Delivery completion
# ---------------------------------------------------------------------------


class TestCompleteFromDelivery:
    def test_in_production_becomes_completed(
        self, order_service, manager_principal, pending_order
    ):
        order_service.approve_order(manager_principal, pending_order.id)
        order_service.set_status(
            manager_principal, pending_order.id, OrderStatus.IN_PRODUCTION
        )

        order = order_service.complete_from_delivery(pending_order.id, manager_principal.id)

        assert order.order_status == OrderStatus.COMPLETED
        assert order.completed_at is not None
        completed = OutboxEvent.objects.get(
            aggregate_id=str(order.id), event_type="OrderCompleted"
        )
        assert completed.payload["source"] == "tracking"

    def test_pending_order_is_completed_too(self, order_service, pending_order, product):
        order = order_service.complete_from_delivery(pending_order.id)
        assert order.order_status == OrderStatus.COMPLETED
        # Completion keeps the reservation consumed.
        assert _stock(product) == 5

    def test_completed_order_is_left_alone(self, order_service, pending_order):
        first = order_service.complete_from_delivery(pending_order.id)
        second = order_service.complete_from_delivery(pending_order.id)
        assert second.completed_at == first.completed_at
        assert OrderStatusHistory.objects.filter(
            order_id=pending_order.id, new_status=OrderStatus.COMPLETED
        ).count() == 1

    def test_rejected_order_stays_rejected(
        self, order_service, manager_principal, pending_order, product
    ):
        order_service.reject_order(manager_principal, pending_order.id)
        order = order_service.complete_from_delivery(pending_order.id)
        assert order.order_status == OrderStatus.REJECTED
        assert _stock(product) == 10


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestQueries:
    def test_buyer_only_lists_own_orders(
        self, order_service, buyer_principal, other_buyer, create_dto, pending_order
    ):
        other = Principal.from_user(other_buyer)
        order_service.create_order(other, create_dto(quantity=2))

        own = list(order_service.list_orders(buyer_principal))
        assert [o.id for o in own] == [pending_order.id]
        assert len(order_service.list_orders(other)) == 1

    def test_manager_lists_everything(
        self, order_service, manager_principal, other_buyer, create_dto, pending_order
    ):
        order_service.create_order(Principal.from_user(other_buyer), create_dto(quantity=2))
        assert order_service.list_orders(manager_principal).count() == 2

    def test_other_buyer_cannot_view(self, order_service, other_buyer, pending_order):
        with pytest.raises(AuthorizationError):
            order_service.get_order(Principal.from_user(other_buyer), pending_order.id)

    def test_invalid_id_is_not_found(self, order_service, manager_principal):
        with pytest.raises(OrderNotFound):
            order_service.get_order(manager_principal, "not-a-uuid")


# ---------------------------------------------------------------------------
# Lost race
# ---------------------------------------------------------------------------


class RacingOrderRepository(OrderDjangoRepository):
    """Another writer changes the status between the read and the write."""

    def transition(self, order_id, expected_status, new_status, stamps=None):
        Order.objects.filter(id=order_id).update(order_status=OrderStatus.CANCELLED)
        return super().transition(order_id, expected_status, new_status, stamps)


class TestLostRace:
    def test_stale_write_raises_and_moves_no_stock(
        self, manager_principal, pending_order, product
    ):
        product_repository = ProductDjangoRepository()
        service = OrderService(
            order_repository=RacingOrderRepository(),
            product_repository=product_repository,
            ledger=build_inventory_ledger(product_repository=product_repository),
        )

        with pytest.raises(OrderModified) as exc_info:
            service.reject_order(manager_principal, pending_order.id)

        assert isinstance(exc_info.value, ConflictError)
        assert _stock(product) == 5
        pending_order.refresh_from_db()
        assert pending_order.order_status == OrderStatus.PENDING
        assert not OrderStatusHistory.objects.filter(
            order_id=pending_order.id, new_status=OrderStatus.REJECTED
        ).exists()


class StaleProductRepository(ProductDjangoRepository):
    """Serves a product snapshot read before a competing order took the stock."""

    def __init__(self, snapshot: Product) -> None:
        self._snapshot = snapshot

    def get_by_id(self, id):
        return self._snapshot


class TestStaleStockSnapshot:
    def test_second_order_on_stale_snapshot_conflicts(
        self, order_service, buyer_principal, other_buyer, create_dto, product
    ):
        Product.objects.filter(id=product.id).update(available_quantity=5)
        snapshot = Product.objects.get(id=product.id)

        order_service.create_order(buyer_principal, create_dto(quantity=3))
        assert _stock(product) == 2

        stale_repository = StaleProductRepository(snapshot)
        service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=stale_repository,
            ledger=build_inventory_ledger(product_repository=stale_repository),
        )

        with pytest.raises(ConflictError) as exc_info:
            service.create_order(Principal.from_user(other_buyer), create_dto(quantity=3))

        assert exc_info.value.kind == "conflict"
        assert exc_info.value.status_code == 409
        assert _stock(product) == 2
        assert Order.objects.filter(product_id=product.id).count() == 1
