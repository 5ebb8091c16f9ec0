"""Order service layer (Use Cases).

Orchestrates order placement and order queries.  Placement is atomic:
the service defines the unit-of-work boundary and any failure rolls back
every stock decrement and every row it wrote.

Business rules enforced on placement:
- Products are locked (SELECT FOR UPDATE, primary-key order) before any
  availability check, so concurrent checkouts serialize per product.
- Lines are validated in cart order against the locked rows.
- Each line is priced at the product's current price and snapshotted.
- Stock decrements are guarded and keep ``in_stock`` in sync.
- Shipping, tax rate and currency come from settings; discount is zero.

Status changes and deletion live in ``modules.orders.state_machine``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Tuple

import structlog
from django.conf import settings
from django.db import DatabaseError, transaction

from modules.core.cache import CatalogCache, catalog_cache
from modules.core.pagination import DEFAULT_PER_PAGE, clamp_per_page, paginate
from modules.orders.constants import OrderStatus
from modules.orders.dtos import OrderOutputDTO
from modules.orders.exceptions import (
    InsufficientStock,
    OrderNotFound,
    OrderProcessingError,
    ProductUnavailable,
)
from modules.orders.filters import ORDER_SORT_FIELDS, OrderFilter
from modules.products.exceptions import StockReservationConflict
from modules.products.ledger import StockLedger
from modules.products.services import CACHE_PREFIX as PRODUCT_CACHE_PREFIX

if TYPE_CHECKING:
    from modules.orders.dtos import PlaceOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

CENTS = Decimal("0.01")
PLACEMENT_FAILED_MESSAGE = "An error occurred while placing the order."


def calculate_tax(subtotal: Decimal, rate: Decimal) -> Decimal:
    """``subtotal * rate`` rounded half-up to cents."""
    return (subtotal * rate).quantize(CENTS, rounding=ROUND_HALF_UP)


class OrderService:
    """Application service for Order use-cases.

    Receives the order repository via constructor injection (DIP); the
    stock ledger and catalog cache default to the shared implementations.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        ledger: Optional[StockLedger] = None,
        cache: Optional[CatalogCache] = None,
    ) -> None:
        self._order_repo = order_repository
        self._ledger = ledger or StockLedger()
        self._cache = cache or catalog_cache
        self._shipping_amount = Decimal(str(settings.ORDER_SHIPPING_AMOUNT))
        self._tax_rate = Decimal(str(settings.ORDER_TAX_RATE))
        self._currency = settings.ORDER_CURRENCY

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def place_order(self, dto: PlaceOrderDTO) -> Order:
        """Place an order from a cart, reserving stock atomically.

        Steps:
        1. Lock every requested, purchasable product row.
        2. For each line, in cart order:
           - Reject products that were not locked (missing, inactive,
             out of stock or deleted).
           - Reject quantities above the locked stock.
           - Price the line at the product's current price.
           - Decrement stock (guarded) and maintain ``in_stock``.
        3. Compute tax, shipping and totals.
        4. Persist the order (``pending``) with snapshotted items.

        Raises:
            ProductUnavailable: a product cannot be purchased.
            InsufficientStock: a line asks for more than is on hand.
            OrderProcessingError: an unexpected persistence failure.
        """
        log = logger.bind(line_count=len(dto.items))
        log.info("order.placement_started")

        try:
            with transaction.atomic():
                order, touched = self._place(dto, log)
        except (ProductUnavailable, InsufficientStock) as exc:
            log.info("order.placement_rejected", code=exc.code, reason=str(exc))
            raise
        except (DatabaseError, RuntimeError) as exc:
            log.exception("order.placement_failed")
            raise OrderProcessingError(PLACEMENT_FAILED_MESSAGE) from exc

        log.info(
            "order.placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(order.total_amount),
        )
        self._invalidate_catalog(touched)
        return self._order_repo.get_by_order_number(order.order_number) or order

    def _place(self, dto: PlaceOrderDTO, log) -> Tuple[Order, List[str]]:
        products = self._ledger.lock_available(item.product_id for item in dto.items)

        lines: List[Dict[str, Any]] = []
        touched: List[str] = []
        subtotal = Decimal("0.00")
        for item in dto.items:
            product = products.get(str(item.product_id))
            if product is None:
                raise ProductUnavailable(str(item.product_id))
            if product.stock_quantity < item.quantity:
                raise InsufficientStock(
                    product.name, product.stock_quantity, item.quantity
                )

            price = product.current_price
            subtotal += price * item.quantity
            try:
                self._ledger.reserve(product, item.quantity)
            except StockReservationConflict as exc:
                raise InsufficientStock(
                    product.name, exc.available, exc.requested
                ) from exc

            log.info(
                "order.stock_reserved",
                product_id=str(product.id),
                quantity=item.quantity,
                remaining=product.stock_quantity,
            )
            touched.extend((str(product.id), product.slug))
            lines.append(
                {
                    "product_id": product.id,
                    "product_name": product.name,
                    "product_sku": product.sku,
                    "price": price,
                    "quantity": item.quantity,
                }
            )

        tax_amount = calculate_tax(subtotal, self._tax_rate)
        discount_amount = Decimal("0.00")
        total_amount = subtotal + self._shipping_amount + tax_amount - discount_amount

        order = self._order_repo.create(
            {
                "status": OrderStatus.PENDING,
                "subtotal": subtotal,
                "tax_amount": tax_amount,
                "shipping_amount": self._shipping_amount,
                "discount_amount": discount_amount,
                "total_amount": total_amount,
                "currency": self._currency,
                "billing_address": dto.billing_address.model_dump(),
                "shipping_address": dto.effective_shipping_address.model_dump(),
                "notes": dto.notes,
                "items": lines,
            }
        )
        return order, touched

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_number: str) -> Order:
        """Retrieve a single order by its public number.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_order_number(order_number)
        if not order:
            raise OrderNotFound(f"Order {order_number} not found.")
        return order

    def list_orders(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        page: Any = 1,
        per_page: Any = DEFAULT_PER_PAGE,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Paginated admin listing with search, status, date and amount filters."""
        sort_by = sort_by if sort_by in ORDER_SORT_FIELDS else "created_at"
        ordering = sort_by if sort_order == "asc" else f"-{sort_by}"
        queryset = OrderFilter(data=filters or {}, queryset=self._order_repo.list()).qs
        return paginate(
            queryset.order_by(ordering, "-pk"),
            page,
            clamp_per_page(per_page),
            serialize_order,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _invalidate_catalog(self, identifiers: Iterable[str]) -> None:
        """Stock changed: drop cached product pages that show it."""
        self._cache.invalidate_item(PRODUCT_CACHE_PREFIX, *identifiers)
        self._cache.invalidate_listing(PRODUCT_CACHE_PREFIX)


def serialize_order(order: Order) -> Dict[str, Any]:
    return OrderOutputDTO.from_entity(order).model_dump(mode="json")
