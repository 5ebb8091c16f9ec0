"""Product DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

Pricing validity (``sale_price < price``) is enforced here, at catalog
write time; checkout trusts whatever sale price is stored.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

if TYPE_CHECKING:
    from modules.products.models import Category, Product


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateProductDTO(BaseModel):
    """Immutable DTO for product creation requests."""

    model_config = ConfigDict(frozen=True)

    sku: str
    name: str
    price: Decimal
    sale_price: Optional[Decimal] = None
    description: str = ""
    short_description: str = ""
    stock_quantity: int = 0
    is_active: bool = True
    category_id: Optional[UUID] = None

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("stock_quantity")
    @classmethod
    def stock_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Stock quantity cannot be negative.")
        return v

    @field_validator("sku")
    @classmethod
    def sku_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("SKU must not be empty.")
        return v.strip().upper()

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Name must not be empty.")
        return v.strip()

    @model_validator(mode="after")
    def sale_price_below_price(self):
        if self.sale_price is not None and self.sale_price >= self.price:
            raise ValueError("Sale price must be less than the price.")
        return self


class UpdateProductDTO(BaseModel):
    """Immutable DTO for product update requests.

    All fields are optional; only supplied fields are updated.
    ``clear_sale_price`` removes an existing sale price.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[Decimal] = None
    sale_price: Optional[Decimal] = None
    clear_sale_price: bool = False
    description: Optional[str] = None
    short_description: Optional[str] = None
    stock_quantity: Optional[int] = None
    is_active: Optional[bool] = None
    category_id: Optional[UUID] = None

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("sale_price")
    @classmethod
    def sale_price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Sale price must be greater than zero.")
        return v

    @field_validator("stock_quantity")
    @classmethod
    def stock_must_be_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("Stock quantity cannot be negative.")
        return v

    @field_validator("sku")
    @classmethod
    def normalise_sku(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("SKU must not be empty.")
        return v.strip().upper()


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class CategoryOutputDTO(BaseModel):
    """Compact category representation embedded in product payloads."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    slug: str

    @classmethod
    def from_entity(cls, category: Category) -> CategoryOutputDTO:
        return cls(id=category.id, name=category.name, slug=category.slug)


class ProductOutputDTO(BaseModel):
    """Immutable DTO for product API responses (and cached catalog reads)."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    sku: str
    name: str
    slug: str
    description: str
    short_description: str
    price: Decimal
    sale_price: Optional[Decimal]
    current_price: Decimal
    is_on_sale: bool
    discount_percentage: int
    stock_quantity: int
    in_stock: bool
    is_active: bool
    category: Optional[CategoryOutputDTO]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, product: Product) -> ProductOutputDTO:
        """Build an output DTO from a Product model instance."""
        category = product.category
        return cls(
            id=product.id,
            sku=product.sku,
            name=product.name,
            slug=product.slug,
            description=product.description,
            short_description=product.short_description,
            price=product.price,
            sale_price=product.sale_price,
            current_price=product.current_price,
            is_on_sale=product.is_on_sale,
            discount_percentage=product.discount_percentage,
            stock_quantity=product.stock_quantity,
            in_stock=product.in_stock,
            is_active=product.is_active,
            category=CategoryOutputDTO.from_entity(category) if category else None,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )

    def to_payload(self) -> dict:
        """JSON-safe dict, suitable for caching and HTTP responses."""
        return self.model_dump(mode="json")
