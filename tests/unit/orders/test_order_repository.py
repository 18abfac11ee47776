"""Unit tests for OrderDjangoRepository conditional writes."""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.utils import timezone

from modules.orders.constants import OrderStatus
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.repositories.interfaces import IOrderRepository
from modules.payments.constants import PaymentStatus

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return OrderDjangoRepository()


def test_implements_interface(repo):
    assert isinstance(repo, IOrderRepository)


def test_transition_applies_when_status_matches(repo, pending_order):
    now = timezone.now()
    assert repo.transition(
        pending_order.id, OrderStatus.PENDING, OrderStatus.APPROVED, {"approved_at": now}
    )
    pending_order.refresh_from_db()
    assert pending_order.order_status == OrderStatus.APPROVED
    assert pending_order.approved_at == now


def test_transition_refuses_stale_status(repo, pending_order):
    assert not repo.transition(
        pending_order.id, OrderStatus.APPROVED, OrderStatus.COMPLETED
    )
    pending_order.refresh_from_db()
    assert pending_order.order_status == OrderStatus.PENDING


def test_conditional_update_recomputes_total(repo, pending_order):
    # Drift written behind the model's back is corrected by the next write.
    Order.objects.filter(id=pending_order.id).update(total_price=Decimal("1.00"))
    repo.transition(pending_order.id, OrderStatus.PENDING, OrderStatus.APPROVED)
    pending_order.refresh_from_db()
    assert pending_order.total_price == Decimal("50.00")


def test_payment_status_update_is_conditional(repo, pending_order):
    assert repo.update_payment_status(
        pending_order.id, PaymentStatus.PENDING, PaymentStatus.FAILED
    )
    assert not repo.update_payment_status(
        pending_order.id, PaymentStatus.PENDING, PaymentStatus.PAID
    )
    assert repo.get_payment_status(pending_order.id) == PaymentStatus.FAILED


def test_payment_reference_not_attached_to_paid_order(repo, pending_order):
    assert repo.set_payment_reference(pending_order.id, "pi_first")
    assert repo.get_by_payment_reference("pi_first").id == pending_order.id

    Order.objects.filter(id=pending_order.id).update(payment_status=PaymentStatus.PAID)
    assert not repo.set_payment_reference(pending_order.id, "pi_second")
    assert repo.get_by_payment_reference("pi_second") is None


@pytest.mark.parametrize("status", [OrderStatus.REJECTED, OrderStatus.CANCELLED])
def test_payment_reference_not_attached_to_closed_order(repo, pending_order, status):
    Order.objects.filter(id=pending_order.id).update(order_status=status)
    assert not repo.set_payment_reference(pending_order.id, "pi_late")
    assert repo.get_by_payment_reference("pi_late") is None


def test_blank_reference_finds_nothing(repo, pending_order):
    assert repo.get_by_payment_reference("") is None


def test_get_by_id_handles_invalid_ids(repo):
    assert repo.get_by_id("not-a-uuid") is None


def test_list_filters_by_buyer(repo, pending_order, buyer, other_buyer):
    assert list(repo.list(buyer_id=buyer.id)) == [pending_order]
    assert not repo.list(buyer_id=other_buyer.id).exists()
    assert repo.list({"order_status": OrderStatus.PENDING}).count() == 1


def test_save_flushes_domain_events(repo, pending_order):
    from modules.core.models import OutboxEvent
    from modules.orders.events import OrderApproved

    pending_order.add_domain_event(OrderApproved(aggregate_id=pending_order.id))
    repo.save(pending_order)

    assert pending_order.domain_events == []
    assert OutboxEvent.objects.filter(
        aggregate_id=str(pending_order.id), event_type="OrderApproved", topic="orders"
    ).exists()
