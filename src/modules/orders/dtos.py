"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``AddressDTO``: billing / shipping address snapshot.
- ``PlaceOrderItemDTO``: input for a single cart line.
- ``PlaceOrderDTO``: input for order placement (nested items).
- ``OrderItemOutputDTO``: output for a single line item.
- ``OrderOutputDTO``: output with items and status flags.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

if TYPE_CHECKING:
    from modules.orders.models import Order


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class AddressDTO(BaseModel):
    """Immutable postal address captured at checkout."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=255)
    email: str = Field(max_length=255)
    phone: str = Field(min_length=10, max_length=20)
    street: str = Field(min_length=5, max_length=500)
    city: str = Field(min_length=2, max_length=100)
    state: str = Field(min_length=2, max_length=100)
    postal_code: str = Field(min_length=3, max_length=20)
    country: str = Field(min_length=2, max_length=100)

    @field_validator("email")
    @classmethod
    def email_must_look_valid(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError("A valid e-mail address is required.")
        return v.lower()


class PlaceOrderItemDTO(BaseModel):
    """Immutable DTO for a single cart line.

    The storefront sends ``product_id`` and ``quantity``; the price is
    resolved by the placement engine from the locked product row.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int = Field(ge=1, le=100)


class PlaceOrderDTO(BaseModel):
    """Immutable DTO for order placement requests.

    Validates:
    - ``items`` holds 1 to 50 lines with distinct products.
    - ``shipping_address`` defaults to ``billing_address``.
    """

    model_config = ConfigDict(frozen=True)

    items: List[PlaceOrderItemDTO] = Field(min_length=1, max_length=50)
    billing_address: AddressDTO
    shipping_address: Optional[AddressDTO] = None
    notes: str = Field(default="", max_length=1000)

    @model_validator(mode="after")
    def no_duplicate_products(self):
        """Prevent duplicate product IDs in the same order."""
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate product IDs are not allowed in the same order.")
        return self

    @property
    def effective_shipping_address(self) -> AddressDTO:
        return self.shipping_address or self.billing_address


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderItemOutputDTO(BaseModel):
    """Immutable DTO for order item API responses."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    product_id: UUID
    product_name: str
    product_sku: str
    quantity: int
    price: Decimal
    total: Decimal


class OrderOutputDTO(BaseModel):
    """Immutable DTO for order API responses."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    status: str
    status_label: str
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    currency: str
    formatted_total: str
    billing_address: Dict[str, Any]
    shipping_address: Dict[str, Any]
    notes: str
    is_shipped: bool
    is_delivered: bool
    is_cancelled: bool
    items_count: int
    total_quantity: int
    created_at: datetime
    updated_at: datetime
    shipped_at: Optional[datetime]
    delivered_at: Optional[datetime]
    items: List[OrderItemOutputDTO]

    @classmethod
    def from_entity(cls, order: Order) -> OrderOutputDTO:
        """Build an output DTO from an Order model instance.

        Assumes ``items`` are prefetched.
        """
        items = [
            OrderItemOutputDTO(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product_name,
                product_sku=item.product_sku,
                quantity=item.quantity,
                price=item.price,
                total=item.total,
            )
            for item in order.items.all()
        ]
        return cls(
            id=order.id,
            order_number=order.order_number,
            status=order.status,
            status_label=order.get_status_display(),
            subtotal=order.subtotal,
            tax_amount=order.tax_amount,
            shipping_amount=order.shipping_amount,
            discount_amount=order.discount_amount,
            total_amount=order.total_amount,
            currency=order.currency,
            formatted_total=order.formatted_total,
            billing_address=order.billing_address,
            shipping_address=order.shipping_address,
            notes=order.notes,
            is_shipped=order.is_shipped,
            is_delivered=order.is_delivered,
            is_cancelled=order.is_cancelled,
            items_count=len(items),
            total_quantity=sum(item.quantity for item in items),
            created_at=order.created_at,
            updated_at=order.updated_at,
            shipped_at=order.shipped_at,
            delivered_at=order.delivered_at,
            items=items,
        )
