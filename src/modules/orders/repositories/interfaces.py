"""Order repository interface.

Extends ``IRepository[Order]`` with the methods the placement engine and
the lifecycle state machine need: atomic creation with items, look-up by
order number, row-locked reads and single-statement field updates.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes its OrderItem children.  Mutations must
    be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items.

        ``data`` carries the order columns plus ``items``: a list of dicts
        with ``product_id``, ``product_name``, ``product_sku``, ``price``
        and ``quantity``.
        """

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Optional[Order]:
        """Retrieve an order (items prefetched) by its public number."""

    @abstractmethod
    def get_for_update(self, order_number: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """Orders with optional ORM look-ups, items prefetched."""

    @abstractmethod
    def update_fields(self, order: Order, fields: Dict[str, Any]) -> Order:
        """Write *fields* (plus ``updated_at``) in a single UPDATE."""

    @abstractmethod
    def delete_with_items(self, order: Order) -> int:
        """Hard-delete the items, then the order; return the item count."""
