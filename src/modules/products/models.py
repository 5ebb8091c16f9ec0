"""Catalog models: Category and Product.

Business rules implemented:
- SKU is unique and normalised to uppercase.
- Slug is derived from the name on creation; collisions get ``-1``, ``-2``...
- Price must be greater than zero; stock quantity cannot be negative.
- ``in_stock`` always mirrors ``stock_quantity > 0``.
- Soft delete via ``deleted_at``: products referenced by order items are
  never removed physically.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.text import slugify

from modules.core.models import BaseModel, SoftDeleteModel

logger = structlog.get_logger(__name__)


class Category(BaseModel):
    """Product grouping, optionally nested one level under a parent."""

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    parent = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="children",
    )
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "categories"
        ordering = ["sort_order", "name"]

    def save(self, *args, **kwargs) -> None:
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.name


class Product(SoftDeleteModel):
    """Product aggregate root.

    ``stock_quantity`` is mutated by checkout only through
    ``modules.products.ledger.StockLedger``; admin edits go through
    ``save()``, which keeps ``in_stock`` consistent.
    """

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True, editable=False)
    sku = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, default="")
    short_description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    sale_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
    )
    stock_quantity = models.PositiveIntegerField(default=0)
    in_stock = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    class Meta:
        db_table = "products"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["is_active", "in_stock"], name="products_availability_idx"
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    @property
    def current_price(self) -> Decimal:
        """Sale price when set, otherwise the list price."""
        return self.sale_price if self.sale_price is not None else self.price

    @property
    def is_on_sale(self) -> bool:
        return self.sale_price is not None and self.sale_price < self.price

    @property
    def discount_percentage(self) -> int:
        if not self.is_on_sale:
            return 0
        ratio = (self.price - self.sale_price) / self.price * 100
        return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})
        if (
            self.sale_price is not None
            and self.price is not None
            and self.sale_price >= self.price
        ):
            raise ValidationError(
                {"sale_price": "Sale price must be less than the price."}
            )
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError(
                {"stock_quantity": "Stock quantity cannot be negative."}
            )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @classmethod
    def unique_slug_for(cls, name: str) -> str:
        """Slugify *name*, appending ``-N`` until no other product uses it."""
        base = slugify(name) or "product"
        slug = base
        counter = 1
        while cls.objects.filter(slug=slug).exists():
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.sku:
            self.sku = self.sku.strip().upper()
        if is_new and not self.slug:
            self.slug = self.unique_slug_for(self.name)
        self.in_stock = self.stock_quantity > 0

        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "stock_quantity" in update_fields:
            kwargs["update_fields"] = list({*update_fields, "in_stock"})

        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                sku=self.sku,
                slug=self.slug,
            )

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"
