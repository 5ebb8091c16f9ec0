"""Unit tests for the Product and Category models."""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from modules.products.models import Category, Product

pytestmark = pytest.mark.unit


class TestSlug:
    def test_slug_derived_from_name(self, make_product):
        product = make_product(name="Classic Polo Shirt")
        assert product.slug == "classic-polo-shirt"

    def test_collisions_get_numeric_suffix(self, make_product):
        first = make_product(name="Polo")
        second = make_product(name="Polo")
        third = make_product(name="Polo")

        assert first.slug == "polo"
        assert second.slug == "polo-1"
        assert third.slug == "polo-2"

    def test_slug_stable_on_rename(self, make_product):
        product = make_product(name="Polo")
        product.name = "Renamed Polo"
        product.save()
        assert product.slug == "polo"

    def test_deleted_products_still_reserve_their_slug(self, make_product):
        make_product(name="Polo").delete()
        assert make_product(name="Polo").slug == "polo-1"

    def test_category_slug(self):
        category = Category.objects.create(name="Semi Formal")
        assert category.slug == "semi-formal"


class TestStockFlag:
    @pytest.mark.parametrize(("quantity", "expected"), [(0, False), (1, True), (50, True)])
    def test_in_stock_mirrors_quantity_on_create(self, make_product, quantity, expected):
        assert make_product(stock_quantity=quantity).in_stock is expected

    def test_in_stock_follows_admin_edit(self, make_product):
        product = make_product(stock_quantity=3)

        product.stock_quantity = 0
        product.save(update_fields=["stock_quantity"])
        product.refresh_from_db()

        assert product.in_stock is False

    def test_in_stock_cannot_be_forced(self, make_product):
        product = make_product(stock_quantity=0)
        product.in_stock = True
        product.save()
        product.refresh_from_db()
        assert product.in_stock is False


class TestPricing:
    def test_current_price_prefers_sale_price(self, make_product):
        product = make_product(price=Decimal("100.00"), sale_price=Decimal("80.00"))
        assert product.current_price == Decimal("80.00")
        assert product.is_on_sale is True
        assert product.discount_percentage == 20

    def test_current_price_without_sale(self, make_product):
        product = make_product(price=Decimal("100.00"))
        assert product.current_price == Decimal("100.00")
        assert product.is_on_sale is False
        assert product.discount_percentage == 0

    def test_discount_rounds_half_up(self):
        product = Product(price=Decimal("8.00"), sale_price=Decimal("7.00"))
        # 12.5% rounds to 13
        assert product.discount_percentage == 13

    def test_clean_rejects_sale_price_not_below_price(self):
        product = Product(
            sku="X", name="X", price=Decimal("10.00"), sale_price=Decimal("10.00")
        )
        with pytest.raises(ValidationError):
            product.clean()

    def test_database_rejects_non_positive_price(self, make_product):
        with pytest.raises(IntegrityError), transaction.atomic():
            make_product(price=Decimal("0.00"))


class TestSku:
    def test_sku_uppercased(self, make_product):
        assert make_product(sku=" abc-1 ").sku == "ABC-1"

    def test_sku_unique(self, make_product):
        make_product(sku="DUP-1")
        with pytest.raises(IntegrityError), transaction.atomic():
            make_product(sku="dup-1")
