"""Unit tests for Order DTOs (Pydantic v2)."""

from __future__ import annotations

from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.dtos import CreateOrderDTO, DeliveryAddressDTO
from modules.payments.constants import PaymentMethod

pytestmark = pytest.mark.unit


def _data(**overrides):
    data = {
        "product_id": uuid4(),
        "quantity": 2,
        "first_name": "Ada",
        "last_name": "Lovelace",
        "contact_number": "+1 555 0100",
        "delivery_address": "1 Main St",
        "payment_method": PaymentMethod.CASH_ON_DELIVERY.value,
    }
    data.update(overrides)
    return data


def test_structured_address_is_formatted():
    dto = CreateOrderDTO(
        **_data(
            delivery_address={
                "street": "1 Main St",
                "city": "Springfield",
                "state": "IL",
                "zip_code": "62701",
                "country": "USA",
            }
        )
    )
    assert isinstance(dto.delivery_address, DeliveryAddressDTO)
    assert dto.formatted_address == "1 Main St, Springfield, IL 62701, USA"


def test_plain_address_is_kept():
    dto = CreateOrderDTO(**_data(delivery_address="42 Elm Rd, Shelbyville"))
    assert dto.formatted_address == "42 Elm Rd, Shelbyville"


@pytest.mark.parametrize("quantity", [0, -3])
def test_quantity_must_be_positive(quantity):
    with pytest.raises(ValidationError, match="Quantity must be at least 1"):
        CreateOrderDTO(**_data(quantity=quantity))


def test_unknown_payment_method_is_rejected():
    with pytest.raises(ValidationError, match="Unknown payment method"):
        CreateOrderDTO(**_data(payment_method="Bitcoin"))


def test_blank_contact_is_rejected():
    with pytest.raises(ValidationError, match="may not be blank"):
        CreateOrderDTO(**_data(contact_number="   "))


def test_names_are_stripped():
    dto = CreateOrderDTO(**_data(first_name="  Ada "))
    assert dto.first_name == "Ada"


def test_dto_is_frozen():
    dto = CreateOrderDTO(**_data())
    with pytest.raises(ValidationError):
        dto.quantity = 10


def test_email_is_optional():
    assert CreateOrderDTO(**_data()).email is None
