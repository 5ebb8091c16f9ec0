"""Order and OrderItem models.

Business rules implemented:
- Order number auto-generated as human-readable identifier, unique at the
  database level, with a bounded collision-retry loop.
- Money fields (subtotal, tax, shipping, discount, total) are written once
  by the placement engine and never change afterwards.
- Status-derived flags (``is_shipped``, ``is_delivered``, ...) are pure
  properties, never stored.
- OrderItem snapshots product name, SKU and price at purchase time.
- OrderItem total is always ``price * quantity`` (calculated on save).
- Orders are hard-deleted (items first); products use soft delete so the
  PROTECT FK on items never blocks a catalog removal.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    DELETE_BLOCKED_STATES,
    ORDER_NUMBER_MAX_RETRIES,
    TERMINAL_STATES,
    OrderStatus,
    can_transition,
)

logger = structlog.get_logger(__name__)

_MONEY = {"max_digits": 10, "decimal_places": 2, "default": Decimal("0.00")}


class Order(BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier auto-generated on first
    save (format: ``ORD-YYYYMMDD-XXXXXXXXXX``) and is the lookup key of the
    admin API.  The UUIDv7 ``id`` is used for internal references.

    Addresses are JSON snapshots of what the customer submitted.
    """

    order_number: models.CharField = models.CharField(
        max_length=32, unique=True, editable=False
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    subtotal: models.DecimalField = models.DecimalField(**_MONEY)
    tax_amount: models.DecimalField = models.DecimalField(**_MONEY)
    shipping_amount: models.DecimalField = models.DecimalField(**_MONEY)
    discount_amount: models.DecimalField = models.DecimalField(**_MONEY)
    total_amount: models.DecimalField = models.DecimalField(**_MONEY)
    currency: models.CharField = models.CharField(max_length=3, default="USD")
    billing_address: models.JSONField = models.JSONField(default=dict)
    shipping_address: models.JSONField = models.JSONField(default=dict)
    notes: models.TextField = models.TextField(blank=True, default="")
    shipped_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    delivered_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]

    # ------------------------------------------------------------------
    # Status-derived flags
    # ------------------------------------------------------------------

    @property
    def is_shipped(self) -> bool:
        """``True`` once the goods left the warehouse (shipped or delivered)."""
        return self.status in (OrderStatus.SHIPPED, OrderStatus.DELIVERED)

    @property
    def is_delivered(self) -> bool:
        return self.status == OrderStatus.DELIVERED

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    @property
    def is_deletable(self) -> bool:
        return self.status not in DELETE_BLOCKED_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        return can_transition(self.status, new_status)

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------

    @property
    def formatted_total(self) -> str:
        return f"{self.currency} {self.total_amount:,.2f}"

    @property
    def item_count(self) -> int:
        return self.items.count()

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(5).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for attempt in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
                logger.warning("order.number_collision", attempt=attempt + 1)
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item linking an Order to a Product.

    ``product_name``, ``product_sku`` and ``price`` are **snapshots** taken
    when the order is placed; they never change even if the product is
    edited later.  ``total`` is always ``price * quantity``, recalculated on
    every save.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    product_name: models.CharField = models.CharField(max_length=255)
    product_sku: models.CharField = models.CharField(max_length=100)
    price: models.DecimalField = models.DecimalField(max_digits=10, decimal_places=2)
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    total: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.price is None:
            raise ValidationError({"price": "Item price is required."})
        self.total = self.price * self.quantity
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "total" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["total"]
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.total})"
