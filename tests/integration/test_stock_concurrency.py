"""Concurrent checkouts against the same stock.

Needs a backend with ``SELECT ... FOR UPDATE`` (PostgreSQL via
``TEST_DATABASE_URL``); skipped on SQLite, where the guarded decrement is
covered by ``TestInterleavedCheckout`` in the placement engine tests.
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from django.db import connection
from django.test import TransactionTestCase, skipUnlessDBFeature

from modules.orders.dtos import AddressDTO, PlaceOrderDTO, PlaceOrderItemDTO
from modules.orders.exceptions import InsufficientStock, OrderError, ProductUnavailable
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product

pytestmark = pytest.mark.integration

ADDRESS = AddressDTO(
    name="Jordan Example",
    email="jordan@example.com",
    phone="+15555550100",
    street="100 Market Street",
    city="Springfield",
    state="IL",
    postal_code="62701",
    country="US",
)


def _checkout(product_id, quantity: int) -> str:
    """Place one order from a worker thread; return the outcome code."""
    try:
        OrderService(OrderDjangoRepository()).place_order(
            PlaceOrderDTO(
                items=[PlaceOrderItemDTO(product_id=product_id, quantity=quantity)],
                billing_address=ADDRESS,
            )
        )
        return "placed"
    except (InsufficientStock, ProductUnavailable) as exc:
        return exc.code
    except OrderError:
        return "internal"
    finally:
        connection.close()


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentCheckoutTests(TransactionTestCase):
    def _product(self, stock: int) -> Product:
        product = Product(
            sku="RACE-1", name="Last Polo", price=Decimal("10.00"), stock_quantity=stock
        )
        product.save()
        return product

    def _race(self, product: Product, workers: int, quantity: int = 1) -> list:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(_checkout, product.id, quantity) for _ in range(workers)
            ]
            return [future.result() for future in futures]

    def test_last_unit_is_sold_once(self):
        product = self._product(stock=1)

        outcomes = self._race(product, workers=2)

        self.assertEqual(outcomes.count("placed"), 1)
        loser = next(outcome for outcome in outcomes if outcome != "placed")
        self.assertIn(loser, ("unavailable", "insufficient-stock"))
        product.refresh_from_db()
        self.assertEqual(product.stock_quantity, 0)
        self.assertFalse(product.in_stock)
        self.assertEqual(Order.objects.count(), 1)

    def test_stock_never_goes_negative(self):
        product = self._product(stock=5)

        outcomes = self._race(product, workers=10)

        self.assertEqual(outcomes.count("placed"), 5)
        self.assertTrue(
            set(outcomes) <= {"placed", "unavailable", "insufficient-stock"}, outcomes
        )
        product.refresh_from_db()
        self.assertEqual(product.stock_quantity, 0)
        self.assertEqual(Order.objects.count(), 5)
