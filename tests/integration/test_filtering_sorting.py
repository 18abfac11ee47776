"""Integration tests for order filtering and ordering."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from modules.orders.constants import OrderStatus
from modules.orders.models import Order
from modules.payments.constants import PaymentMethod, PaymentStatus
from modules.products.models import Product

pytestmark = pytest.mark.integration


def _order(buyer, product, quantity, **fields):
    return Order.objects.create(
        buyer=buyer,
        product=product,
        quantity=quantity,
        unit_price=product.price,
        first_name="Filter",
        last_name="Buyer",
        email=buyer.email,
        contact_number="+1 555 0100",
        delivery_address="1 Main St",
        payment_method=PaymentMethod.STRIPE,
        **fields,
    )


@pytest.fixture()
def second_product(manager):
    return Product.objects.create(
        name="Wool Scarf",
        price=Decimal("4.00"),
        available_quantity=50,
        minimum_order_quantity=1,
        created_by=manager,
    )


@pytest.fixture()
def order_batch(buyer, other_buyer, product, second_product):
    now = timezone.now()
    old_order = _order(buyer, product, 2)
    Order.objects.filter(id=old_order.id).update(created_at=now - timedelta(days=3))
    approved = _order(
        buyer,
        product,
        6,
        order_status=OrderStatus.APPROVED,
        payment_status=PaymentStatus.PAID,
    )
    scarf = _order(other_buyer, second_product, 1, payment_status=PaymentStatus.FAILED)
    return old_order, approved, scarf


def _ids(response):
    assert response.status_code == 200
    return {item["id"] for item in response.data["results"]}


class TestOrderFiltering:
    def test_filter_by_status(self, manager_client, order_batch):
        _, approved, _ = order_batch
        response = manager_client.get("/api/v1/orders/?status=approved")
        assert _ids(response) == {str(approved.id)}

    def test_unknown_status_is_rejected(self, manager_client, order_batch):
        response = manager_client.get("/api/v1/orders/?status=shipped")
        assert response.status_code == 400

    def test_filter_by_payment_status(self, manager_client, order_batch):
        _, _, scarf = order_batch
        response = manager_client.get("/api/v1/orders/?payment_status=FAILED")
        assert _ids(response) == {str(scarf.id)}

    def test_filter_by_product(self, manager_client, order_batch, product):
        old_order, approved, _ = order_batch
        response = manager_client.get(f"/api/v1/orders/?product={product.id}")
        assert _ids(response) == {str(old_order.id), str(approved.id)}

    def test_filter_date_range(self, manager_client, order_batch):
        old_order, approved, scarf = order_batch
        start = (timezone.now() - timedelta(days=1)).date().isoformat()
        end = (timezone.now() - timedelta(days=2)).date().isoformat()

        recent = manager_client.get(f"/api/v1/orders/?start_date={start}")
        older = manager_client.get(f"/api/v1/orders/?end_date={end}")

        assert _ids(recent) == {str(approved.id), str(scarf.id)}
        assert _ids(older) == {str(old_order.id)}

    def test_buyer_filters_stay_scoped(self, buyer_client, order_batch, second_product):
        response = buyer_client.get(f"/api/v1/orders/?product={second_product.id}")
        assert _ids(response) == set()


class TestOrderOrdering:
    def test_default_is_newest_first(self, manager_client, order_batch):
        old_order, _, scarf = order_batch
        results = manager_client.get("/api/v1/orders/").data["results"]
        assert results[0]["id"] == str(scarf.id)
        assert results[-1]["id"] == str(old_order.id)

    def test_ordering_by_total_price(self, manager_client, order_batch):
        response = manager_client.get("/api/v1/orders/?ordering=total_price")
        totals = [Decimal(item["total_price"]) for item in response.data["results"]]
        assert totals == [Decimal("4.00"), Decimal("20.00"), Decimal("60.00")]

    def test_ordering_descending(self, manager_client, order_batch):
        response = manager_client.get("/api/v1/orders/?ordering=-total_price")
        totals = [Decimal(item["total_price"]) for item in response.data["results"]]
        assert totals == sorted(totals, reverse=True)


class TestCombinedQuery:
    def test_combined_filters_pagination(self, manager_client, order_batch, product):
        response = manager_client.get(
            f"/api/v1/orders/?product={product.id}&ordering=total_price&limit=1"
        )
        assert response.status_code == 200
        assert response.data["count"] == 2
        assert len(response.data["results"]) == 1
        assert response.data["next"] is not None
