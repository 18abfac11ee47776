from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.core.policies import Principal
from modules.orders.dtos import CreateOrderDTO
from modules.orders.services import build_order_service
from modules.payments.constants import PaymentMethod
from modules.products.models import Product
from modules.users.constants import UserRole, UserStatus
from tests.fakes import FakePaymentGateway

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _reset_gateway():
    FakePaymentGateway.reset()
    yield
    FakePaymentGateway.reset()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _user(username, role, status=UserStatus.APPROVED):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="testpass123",
        role=role,
        status=status,
    )


@pytest.fixture()
def buyer():
    return _user("buyer", UserRole.BUYER)


@pytest.fixture()
def other_buyer():
    return _user("other_buyer", UserRole.BUYER)


@pytest.fixture()
def manager():
    return _user("manager", UserRole.MANAGER)


@pytest.fixture()
def admin_user():
    return _user("admin", UserRole.ADMIN)


@pytest.fixture()
def pending_buyer():
    return _user("pending_buyer", UserRole.BUYER, UserStatus.PENDING)


@pytest.fixture()
def suspended_buyer():
    return _user("suspended_buyer", UserRole.BUYER, UserStatus.SUSPENDED)


@pytest.fixture()
def buyer_principal(buyer):
    return Principal.from_user(buyer)


@pytest.fixture()
def manager_principal(manager):
    return Principal.from_user(manager)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def product(manager):
    """Stock 10, minimum 2, price 10.00, both payment methods."""
    return Product.objects.create(
        name="Linen Shirt",
        price=Decimal("10.00"),
        available_quantity=10,
        minimum_order_quantity=2,
        payment_options=[PaymentMethod.CASH_ON_DELIVERY, PaymentMethod.STRIPE],
        created_by=manager,
    )


@pytest.fixture()
def order_payload(product):
    """Valid order creation body for ``product``."""
    return {
        "product_id": str(product.id),
        "quantity": 5,
        "first_name": "Ada",
        "last_name": "Lovelace",
        "contact_number": "+1 555 0100",
        "delivery_address": {
            "street": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62701",
            "country": "USA",
        },
        "payment_method": PaymentMethod.STRIPE,
    }


# ---------------------------------------------------------------------------
# Authenticated clients
# ---------------------------------------------------------------------------


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def buyer_client(buyer):
    return _client_for(buyer)


@pytest.fixture()
def other_buyer_client(other_buyer):
    return _client_for(other_buyer)


@pytest.fixture()
def manager_client(manager):
    return _client_for(manager)


@pytest.fixture()
def admin_client_api(admin_user):
    return _client_for(admin_user)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return build_order_service()


@pytest.fixture()
def create_dto(product):
    """Factory for ``CreateOrderDTO`` against ``product`` (quantity 5)."""

    def _build(**overrides):
        data = {
            "product_id": product.id,
            "quantity": 5,
            "first_name": "Ada",
            "last_name": "Lovelace",
            "contact_number": "+1 555 0100",
            "delivery_address": "1 Main St, Springfield, IL 62701, USA",
            "payment_method": PaymentMethod.STRIPE,
            "email": "ada@example.com",
        }
        data.update(overrides)
        return CreateOrderDTO(**data)

    return _build


@pytest.fixture()
def pending_order(order_service, buyer_principal, create_dto):
    """Pending order for 5 units of ``product`` (stock left: 5)."""
    return order_service.create_order(buyer_principal, create_dto())
