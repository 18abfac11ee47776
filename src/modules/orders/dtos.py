"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``DeliveryAddressDTO``: structured address, flattened on the order.
- ``CreateOrderDTO``: input for order creation.
"""

from __future__ import annotations

from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.payments.constants import PaymentMethod


class DeliveryAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str
    city: str
    state: str
    zip_code: str
    country: str

    def format(self) -> str:
        """Render as ``"street, city, state zip_code, country"``."""
        return (
            f"{self.street}, {self.city}, {self.state} {self.zip_code}, "
            f"{self.country}"
        )


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    ``unit_price`` is never accepted from the caller; the Service Layer
    snapshots it from the product.  ``email`` defaults to the buyer's
    account email when omitted.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    first_name: str
    last_name: str
    contact_number: str
    delivery_address: Union[DeliveryAddressDTO, str]
    payment_method: str
    additional_notes: str = ""
    email: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("payment_method")
    @classmethod
    def payment_method_must_be_known(cls, v: str) -> str:
        if v not in PaymentMethod.values:
            raise ValueError(f"Unknown payment method {v!r}.")
        return v

    @field_validator("first_name", "last_name", "contact_number")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field may not be blank.")
        return v.strip()

    @property
    def formatted_address(self) -> str:
        if isinstance(self.delivery_address, DeliveryAddressDTO):
            return self.delivery_address.format()
        return self.delivery_address
