"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
Write operations are wrapped in ``transaction.atomic()`` so the Order
aggregate (Order + OrderItems) is persisted or removed as a unit; when the
caller already holds a transaction they join it.

Concurrency control on status updates and deletion uses
``select_for_update()`` on the order row.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone

from modules.orders.models import Order, OrderItem
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` keys: every ``Order`` column the caller wants to set
        (money fields, currency, addresses, notes) plus ``items``.
        """
        data = dict(data)
        items = data.pop("items", [])
        order = Order(**data)
        order.save()

        for item_data in items:
            OrderItem(
                order=order,
                product_id=item_data["product_id"],
                product_name=item_data["product_name"],
                product_sku=item_data["product_sku"],
                price=item_data["price"],
                quantity=item_data["quantity"],
            ).save()

        logger.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched items.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Order.objects.prefetch_related("items").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_order_number(self, order_number: str) -> Optional[Order]:
        return (
            Order.objects.prefetch_related("items")
            .filter(order_number=order_number)
            .first()
        )

    def get_for_update(self, order_number: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock.

        Must be called inside ``transaction.atomic``.
        """
        return (
            Order.objects.select_for_update()
            .filter(order_number=order_number)
            .first()
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet[Order]:
        """Orders with optional filters and prefetched items.

        Examples of valid filters::

            {"status": "pending"}
            {"created_at__date__gte": date(2025, 1, 1)}
        """
        queryset = Order.objects.prefetch_related("items")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order."""
        entity.save()
        logger.info("order.saved", order_id=str(entity.id))
        return entity

    def update_fields(self, order: Order, fields: Dict[str, Any]) -> Order:
        """Single ``UPDATE`` of *fields* and ``updated_at``.

        The in-memory instance is updated to match.
        """
        values = {**fields, "updated_at": timezone.now()}
        Order.objects.filter(pk=order.pk).update(**values)
        for name, value in values.items():
            setattr(order, name, value)
        return order

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete an order and its items by ID."""
        try:
            order = Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return False
        if not order:
            return False
        self.delete_with_items(order)
        return True

    @transaction.atomic
    def delete_with_items(self, order: Order) -> int:
        items_deleted, _ = OrderItem.objects.filter(order_id=order.pk).delete()
        Order.objects.filter(pk=order.pk).delete()
        logger.info(
            "order.deleted",
            order_id=str(order.id),
            order_number=order.order_number,
            items_deleted=items_deleted,
        )
        return items_deleted
