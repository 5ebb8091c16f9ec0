"""Unit tests for ProductService.

Covers:
- create_product / update_product / delete_product, with mocked repository
  and cache: uniqueness, pricing and the invalidation each write performs.
- Cached reads against the real repository: hits, coherence after writes,
  storefront visibility rules, categories-for-select grouping.
- Cart stock validation report.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.products.dtos import CreateProductDTO, UpdateProductDTO
from modules.products.exceptions import (
    CategoryNotFound,
    InvalidPricing,
    ProductAlreadyExists,
    ProductNotFound,
)
from modules.products.models import Category, Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_repo():
    return MagicMock()


@pytest.fixture()
def mock_cache():
    return MagicMock()


@pytest.fixture()
def service(mock_repo, mock_cache):
    return ProductService(repository=mock_repo, cache=mock_cache)


@pytest.fixture()
def live_service():
    return ProductService(repository=ProductDjangoRepository())


def _assert_write_invalidation(mock_cache, *identifiers):
    mock_cache.invalidate_item.assert_called_once_with("product_", *identifiers)
    mock_cache.invalidate_listing.assert_called_once_with("product_")
    mock_cache.invalidate.assert_called_once_with("*categories_select*")


# ===========================================================================
# create_product
# ===========================================================================


class TestCreateProduct:
    def test_success_invalidates_catalog(self, service, mock_repo, mock_cache):
        mock_repo.get_by_sku.return_value = None
        mock_repo.save.side_effect = lambda p: p.save() or p

        product = service.create_product(
            CreateProductDTO(sku="pol-001", name="Classic Polo", price=Decimal("49.90"))
        )

        assert product.sku == "POL-001"
        assert product.slug == "classic-polo"
        mock_repo.save.assert_called_once()
        _assert_write_invalidation(mock_cache, product.id, "classic-polo")

    def test_duplicate_sku_raises(self, service, mock_repo, mock_cache, make_product):
        mock_repo.get_by_sku.return_value = make_product(sku="POL-001")

        with pytest.raises(ProductAlreadyExists):
            service.create_product(
                CreateProductDTO(sku="POL-001", name="Polo", price=Decimal("10.00"))
            )

        mock_repo.save.assert_not_called()
        mock_cache.invalidate_item.assert_not_called()

    def test_unknown_category_raises(self, service, mock_repo):
        mock_repo.get_by_sku.return_value = None
        mock_repo.get_category.return_value = None

        with pytest.raises(CategoryNotFound):
            service.create_product(
                CreateProductDTO(
                    sku="POL-002",
                    name="Polo",
                    price=Decimal("10.00"),
                    category_id=uuid4(),
                )
            )


# ===========================================================================
# update_product
# ===========================================================================


class TestUpdateProduct:
    def test_partial_update(self, service, mock_repo, mock_cache, make_product):
        product = make_product(name="Polo", price=Decimal("50.00"))
        mock_repo.get_for_update.return_value = product
        mock_repo.save.side_effect = lambda p: p.save() or p

        updated = service.update_product(
            str(product.id), UpdateProductDTO(price=Decimal("45.00"))
        )

        assert updated.price == Decimal("45.00")
        assert updated.name == "Polo"
        _assert_write_invalidation(mock_cache, product.id, "polo")

    def test_not_found(self, service, mock_repo, mock_cache):
        mock_repo.get_for_update.return_value = None

        with pytest.raises(ProductNotFound):
            service.update_product(str(uuid4()), UpdateProductDTO(name="X"))

        mock_cache.invalidate_item.assert_not_called()

    def test_sale_price_must_stay_below_price(self, service, mock_repo, make_product):
        product = make_product(price=Decimal("50.00"), sale_price=Decimal("40.00"))
        mock_repo.get_for_update.return_value = product

        with pytest.raises(InvalidPricing):
            service.update_product(
                str(product.id), UpdateProductDTO(price=Decimal("30.00"))
            )

    def test_clear_sale_price(self, service, mock_repo, make_product):
        product = make_product(price=Decimal("50.00"), sale_price=Decimal("40.00"))
        mock_repo.get_for_update.return_value = product
        mock_repo.save.side_effect = lambda p: p.save() or p

        updated = service.update_product(
            str(product.id), UpdateProductDTO(clear_sale_price=True)
        )

        assert updated.sale_price is None
        assert updated.current_price == Decimal("50.00")

    def test_sku_taken_by_another_product(self, service, mock_repo, make_product):
        product = make_product(sku="A-1")
        mock_repo.get_for_update.return_value = product
        mock_repo.get_by_sku.return_value = make_product(sku="B-1")

        with pytest.raises(ProductAlreadyExists):
            service.update_product(str(product.id), UpdateProductDTO(sku="b-1"))


# ===========================================================================
# delete_product
# ===========================================================================


class TestDeleteProduct:
    def test_success(self, service, mock_repo, mock_cache, make_product):
        product = make_product(name="Polo")
        mock_repo.get_by_id.return_value = product
        mock_repo.delete.return_value = True

        service.delete_product(str(product.id))

        mock_repo.delete.assert_called_once_with(str(product.id))
        _assert_write_invalidation(mock_cache, product.id, "polo")

    def test_not_found(self, service, mock_repo):
        mock_repo.get_by_id.return_value = None

        with pytest.raises(ProductNotFound):
            service.delete_product(str(uuid4()))


# ===========================================================================
# Cached reads (real repository + local-memory cache)
# ===========================================================================


class TestCachedReads:
    def test_get_product_is_cached(self, live_service, make_product):
        product = make_product(name="Polo")
        live_service.get_product(str(product.id))

        Product.objects.filter(pk=product.pk).update(name="Changed behind the cache")

        assert live_service.get_product(str(product.id))["name"] == "Polo"

    def test_get_product_not_found(self, live_service):
        with pytest.raises(ProductNotFound):
            live_service.get_product(str(uuid4()))

    def test_listing_reflects_create(self, live_service, make_product):
        make_product()
        assert live_service.list_products()["count"] == 1

        live_service.create_product(
            CreateProductDTO(sku="NEW-1", name="New", price=Decimal("5.00"))
        )

        assert live_service.list_products()["count"] == 2

    def test_listing_reflects_update(self, live_service, make_product):
        product = make_product(price=Decimal("10.00"))
        assert live_service.list_products()["results"][0]["price"] == "10.00"
        assert live_service.get_product(str(product.id))["price"] == "10.00"

        live_service.update_product(
            str(product.id), UpdateProductDTO(price=Decimal("12.50"))
        )

        assert live_service.list_products()["results"][0]["price"] == "12.50"
        assert live_service.get_product(str(product.id))["price"] == "12.50"

    @pytest.mark.parametrize(
        "spell", [str.upper, lambda pid: pid.replace("-", "")], ids=["upper", "hex"]
    )
    def test_detail_reflects_update_for_any_id_spelling(
        self, live_service, make_product, spell
    ):
        product = make_product(price=Decimal("10.00"))
        alias = spell(str(product.id))
        assert live_service.get_product(alias)["price"] == "10.00"

        live_service.update_product(
            str(product.id), UpdateProductDTO(price=Decimal("12.50"))
        )

        assert live_service.get_product(alias)["price"] == "12.50"

    def test_malformed_id_is_not_found(self, live_service):
        with pytest.raises(ProductNotFound):
            live_service.get_product("not-a-uuid")

    def test_listing_reflects_delete(self, live_service, make_product):
        product = make_product(name="Polo")
        assert live_service.list_public_products()["count"] == 1
        assert live_service.get_public_product("polo")["id"] == str(product.id)

        live_service.delete_product(str(product.id))

        assert live_service.list_public_products()["count"] == 0
        with pytest.raises(ProductNotFound):
            live_service.get_public_product("polo")

    def test_filters_partition_the_cache(self, live_service, make_product):
        make_product(name="Blue Polo")
        make_product(name="Slim Jeans")

        assert live_service.list_products({"search": "polo"})["count"] == 1
        assert live_service.list_products({"search": "jeans"})["count"] == 1
        assert live_service.list_products()["count"] == 2

    def test_public_listing_only_active_in_stock(self, live_service, make_product):
        visible = make_product()
        make_product(is_active=False)
        make_product(stock_quantity=0)

        payload = live_service.list_public_products()

        assert [row["id"] for row in payload["results"]] == [str(visible.id)]

    def test_public_listing_sorting(self, live_service, make_product):
        make_product(name="Cheap", price=Decimal("5.00"))
        make_product(name="Dear", price=Decimal("50.00"))

        by_price_desc = live_service.list_public_products(sort_by="price_desc")
        by_name = live_service.list_public_products(sort_by="bogus")

        assert [r["name"] for r in by_price_desc["results"]] == ["Dear", "Cheap"]
        assert [r["name"] for r in by_name["results"]] == ["Cheap", "Dear"]

    def test_inactive_product_hidden_by_slug(self, live_service, make_product):
        make_product(name="Hidden", is_active=False)
        with pytest.raises(ProductNotFound):
            live_service.get_public_product("hidden")

    def test_categories_for_select_groups_children(self, live_service):
        casual = Category.objects.create(name="Casual", sort_order=1)
        formal = Category.objects.create(name="Formal", sort_order=2)
        Category.objects.create(name="Polo", parent=casual, sort_order=1)
        Category.objects.create(name="Jeans", parent=casual, sort_order=2)
        Category.objects.create(name="Archived", parent=formal, is_active=False)

        options = live_service.categories_for_select()

        assert [(o["name"], o["level"]) for o in options] == [
            ("Casual", 0),
            ("Polo", 1),
            ("Jeans", 1),
            ("Formal", 0),
        ]
        assert options[0]["value"] == options[0]["id"] == str(casual.id)

    def test_categories_invalidated_by_product_write(self, live_service, make_product):
        live_service.categories_for_select()
        Category.objects.create(name="Fresh")

        live_service.create_product(
            CreateProductDTO(sku="C-1", name="C", price=Decimal("1.00"))
        )

        assert [o["name"] for o in live_service.categories_for_select()] == ["Fresh"]


class TestValidateCartStock:
    def test_all_valid(self, live_service, make_product):
        product = make_product(stock_quantity=3)

        report = live_service.validate_cart_stock([(product.id, 3)])

        assert report["valid"] is True
        assert report["message"] == "All items are available"

    def test_stock_issue(self, live_service, make_product):
        product = make_product(stock_quantity=3)

        report = live_service.validate_cart_stock([(product.id, 4)])

        assert report["valid"] is False
        assert report["message"] == "Some items have stock issues"
        assert report["items"][0]["error"] == "Insufficient stock"

    def test_cached_reads_do_not_hide_stock_changes(self, live_service, make_product):
        product = make_product(stock_quantity=3)
        live_service.list_public_products()

        Product.objects.filter(pk=product.pk).update(stock_quantity=0, in_stock=False)

        assert live_service.validate_cart_stock([(product.id, 1)])["valid"] is False

