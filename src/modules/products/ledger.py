"""Stock Ledger: the authoritative quantity-on-hand per product.

Checkout mutates ``stock_quantity`` only through ``StockLedger.reserve``,
inside the transaction that first locked the rows with
``StockLedger.lock_available``.  Concurrent checkouts for the same product
serialize on those row locks, so availability is always evaluated against
the committed quantity.

``reserve`` is additionally a guarded ``UPDATE ... WHERE stock_quantity >=
quantity``: on stores without ``SELECT ... FOR UPDATE`` (SQLite) it acts as a
compare-and-swap and still cannot drive stock below zero.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db.models import BooleanField, Case, F, Value, When
from django.utils import timezone

from modules.products.exceptions import StockReservationConflict
from modules.products.models import Product

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockCheckResult:
    """Outcome of a non-locking availability check for one cart line."""

    product_id: str
    valid: bool
    error: Optional[str]
    available_quantity: int
    requested_quantity: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class StockLedger:
    """Row-locked reads and guarded decrements of product stock."""

    def lock_available(self, product_ids: Iterable[UUID | str]) -> Dict[str, Product]:
        """Lock and return purchasable products, keyed by ``str(id)``.

        One ``SELECT ... FOR UPDATE`` over active, in-stock, not deleted
        rows, ordered by primary key so concurrent checkouts acquire locks
        in the same order.  Must be called inside ``transaction.atomic``.
        Products that are missing or not purchasable are simply absent.
        """
        ids = list(dict.fromkeys(str(pid) for pid in product_ids))
        products = (
            Product.objects.alive()
            .select_for_update()
            .filter(id__in=ids, is_active=True, in_stock=True)
            .order_by("pk")
        )
        locked = {str(product.id): product for product in products}
        logger.debug("stock.rows_locked", requested=len(ids), locked=len(locked))
        return locked

    def reserve(self, product: Product, quantity: int) -> Product:
        """Decrement *product* stock by *quantity* and maintain ``in_stock``.

        Raises:
            StockReservationConflict: fewer than *quantity* units remain.
        """
        # in_stock is assigned before stock_quantity: MySQL evaluates SET
        # clauses left to right, other backends use the pre-update row.
        updated = Product.objects.filter(
            pk=product.pk, stock_quantity__gte=quantity
        ).update(
            in_stock=Case(
                When(stock_quantity__gt=quantity, then=Value(True)),
                default=Value(False),
                output_field=BooleanField(),
            ),
            stock_quantity=F("stock_quantity") - quantity,
            updated_at=timezone.now(),
        )
        if not updated:
            product.refresh_from_db(fields=["stock_quantity", "in_stock"])
            raise StockReservationConflict(
                f"Insufficient stock for {product.name}. "
                f"Available: {product.stock_quantity}, Requested: {quantity}",
                available=product.stock_quantity,
                requested=quantity,
            )

        product.stock_quantity -= quantity
        product.in_stock = product.stock_quantity > 0
        logger.info(
            "stock.reserved",
            product_id=str(product.id),
            quantity=quantity,
            remaining=product.stock_quantity,
            in_stock=product.in_stock,
        )
        return product

    def check_availability(
        self, items: Iterable[Tuple[UUID | str, int]]
    ) -> List[StockCheckResult]:
        """Report per-line availability without locking anything."""
        lines = [(str(pid), quantity) for pid, quantity in items]
        try:
            products = {
                str(p.id): p
                for p in Product.objects.alive().filter(
                    id__in=[pid for pid, _ in lines]
                )
            }
        except (ValueError, ValidationError):
            products = {}

        results = []
        for product_id, requested in lines:
            product = products.get(product_id)
            if product is None:
                results.append(
                    StockCheckResult(product_id, False, "Product not found", 0, requested)
                )
            elif not product.is_active or not product.in_stock:
                results.append(
                    StockCheckResult(
                        product_id, False, "Product is no longer available", 0, requested
                    )
                )
            elif product.stock_quantity < requested:
                results.append(
                    StockCheckResult(
                        product_id,
                        False,
                        "Insufficient stock",
                        product.stock_quantity,
                        requested,
                    )
                )
            else:
                results.append(
                    StockCheckResult(
                        product_id, True, None, product.stock_quantity, requested
                    )
                )
        return results
