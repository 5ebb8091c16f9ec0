"""Integration tests for OrderDjangoRepository against the test database."""

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem
from modules.orders.repositories import IOrderRepository, OrderDjangoRepository

pytestmark = pytest.mark.integration


@pytest.fixture()
def repo():
    return OrderDjangoRepository()


@pytest.fixture()
def order(repo, make_product):
    product = make_product()
    return repo.create(
        {
            "subtotal": Decimal("100.00"),
            "total_amount": Decimal("123.00"),
            "items": [
                {
                    "product_id": product.id,
                    "product_name": product.name,
                    "product_sku": product.sku,
                    "price": Decimal("50.00"),
                    "quantity": 2,
                }
            ],
        }
    )


def test_satisfies_interface(repo):
    assert isinstance(repo, IOrderRepository)


def test_create_persists_items(order):
    item = OrderItem.objects.get(order=order)
    assert item.total == Decimal("100.00")
    assert order.status == OrderStatus.PENDING


def test_lookups(repo, order):
    assert repo.get_by_id(str(order.id)) == order
    assert repo.get_by_order_number(order.order_number) == order
    assert repo.get_by_id("not-a-uuid") is None
    assert repo.get_by_order_number("ORD-missing") is None


def test_list_filters(repo, order):
    assert list(repo.list({"status": "pending"})) == [order]
    assert list(repo.list({"status": "shipped"})) == []


def test_update_fields_mirrors_instance(repo, order):
    before = order.updated_at

    repo.update_fields(order, {"status": OrderStatus.PROCESSING})

    assert order.status == OrderStatus.PROCESSING
    assert order.updated_at >= before
    assert Order.objects.get(pk=order.pk).status == OrderStatus.PROCESSING


def test_save_updates_notes(repo, order):
    order.notes = "Gift wrap"
    repo.save(order)
    assert Order.objects.get(pk=order.pk).notes == "Gift wrap"


def test_delete_by_id_removes_items(repo, order):
    assert repo.delete(str(order.id)) is True
    assert not Order.objects.exists()
    assert not OrderItem.objects.exists()


def test_delete_unknown(repo):
    assert repo.delete(str(uuid4())) is False
    assert repo.delete("nope") is False
