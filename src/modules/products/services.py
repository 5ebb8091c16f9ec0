"""Product service layer (Use Cases).

Orchestrates catalog reads and writes for the Product aggregate,
delegating persistence to the injected ``IProductRepository`` and read
caching to ``CatalogCache``.

Cache contract:
- Every read goes through ``CatalogCache.resolve`` under the ``product_``
  namespace (``product_index``, ``product_show``, ``product_public_index``,
  ``product_public_show``, ``product_categories_select``).
- Every write (create, update, delete) invalidates, after its transaction
  has finished, the item keys (id and slug), every listing key and the
  categories-for-select key.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Tuple
from uuid import UUID

import structlog
from django.db import transaction

from modules.core.cache import CatalogCache, catalog_cache, catalog_params
from modules.core.pagination import DEFAULT_PER_PAGE, clamp_per_page, paginate
from modules.products.dtos import ProductOutputDTO
from modules.products.exceptions import (
    CategoryNotFound,
    InvalidPricing,
    ProductAlreadyExists,
    ProductNotFound,
)
from modules.products.filters import PRODUCT_FILTER_PARAMS, PUBLIC_SORTS, ProductFilter
from modules.products.ledger import StockLedger
from modules.products.models import Product

if TYPE_CHECKING:
    from modules.products.dtos import CreateProductDTO, UpdateProductDTO
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

CACHE_PREFIX = "product_"
CATEGORIES_CACHE_PATTERN = "*categories_select*"


def _serialize(product: Product) -> Dict[str, Any]:
    return ProductOutputDTO.from_entity(product).to_payload()


class ProductService:
    """Application service for Product use-cases.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(
        self,
        repository: IProductRepository,
        cache: Optional[CatalogCache] = None,
        ledger: Optional[StockLedger] = None,
    ) -> None:
        self._repo = repository
        self._cache = cache or catalog_cache
        self._ledger = ledger or StockLedger()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_product(self, dto: CreateProductDTO) -> Product:
        """Create a new product after enforcing uniqueness rules.

        Raises:
            ProductAlreadyExists: if SKU is already taken.
            CategoryNotFound: if ``category_id`` does not exist.
        """
        log = logger.bind(sku=dto.sku)

        with transaction.atomic():
            if self._repo.get_by_sku(dto.sku):
                log.warning("product.duplicate_sku")
                raise ProductAlreadyExists(f"SKU '{dto.sku}' already registered.")

            product = Product(
                sku=dto.sku,
                name=dto.name,
                price=dto.price,
                sale_price=dto.sale_price,
                description=dto.description,
                short_description=dto.short_description,
                stock_quantity=dto.stock_quantity,
                is_active=dto.is_active,
                category=self._resolve_category(dto.category_id),
            )
            product = self._repo.save(product)

        log.info("product.created", product_id=str(product.id), slug=product.slug)
        self._invalidate(product.id, product.slug)
        return product

    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        """Update an existing product with the supplied fields.

        The row is locked for the duration of the write so a concurrent
        checkout cannot interleave with an admin stock edit.

        Raises:
            ProductNotFound: if the product does not exist.
            ProductAlreadyExists: if the new SKU belongs to another product.
            CategoryNotFound: if ``category_id`` does not exist.
            InvalidPricing: if the resulting sale price is not below price.
        """
        log = logger.bind(product_id=str(id))

        with transaction.atomic():
            product = self._repo.get_for_update(id)
            if not product:
                raise ProductNotFound(f"Product {id} not found.")
            old_slug = product.slug

            if dto.sku is not None and dto.sku != product.sku:
                existing = self._repo.get_by_sku(dto.sku)
                if existing and existing.pk != product.pk:
                    log.warning("product.duplicate_sku", sku=dto.sku)
                    raise ProductAlreadyExists(f"SKU '{dto.sku}' already registered.")

            for field in (
                "name",
                "sku",
                "price",
                "sale_price",
                "description",
                "short_description",
                "stock_quantity",
                "is_active",
            ):
                value = getattr(dto, field)
                if value is not None:
                    setattr(product, field, value)
            if dto.clear_sale_price:
                product.sale_price = None
            if dto.category_id is not None:
                product.category = self._resolve_category(dto.category_id)

            if product.sale_price is not None and product.sale_price >= product.price:
                raise InvalidPricing("Sale price must be less than the price.")

            product = self._repo.save(product)

        log.info("product.updated")
        self._invalidate(product.id, old_slug, product.slug)
        return product

    def delete_product(self, id: str) -> None:
        """Soft-delete a product.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        if not self._repo.delete(id):
            raise ProductNotFound(f"Product {id} not found.")
        logger.info("product.deleted", product_id=str(id))
        self._invalidate(product.id, product.slug)

    # ------------------------------------------------------------------
    # Queries (cached)
    # ------------------------------------------------------------------

    def get_product(self, id: str) -> Dict[str, Any]:
        """Cached admin product detail.

        Raises:
            ProductNotFound: if the product does not exist.
        """

        id = _canonical_id(id)

        def produce() -> Dict[str, Any]:
            product = self._repo.get_by_id(id)
            if not product:
                raise ProductNotFound(f"Product {id} not found.")
            return _serialize(product)

        return self._cache.resolve(f"{CACHE_PREFIX}show", {"id": id}, produce)

    def list_products(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        page: Any = 1,
        per_page: Any = DEFAULT_PER_PAGE,
    ) -> Dict[str, Any]:
        """Cached, paginated admin listing (newest first)."""
        clean = _filter_params(filters)
        per_page = clamp_per_page(per_page)

        def produce() -> Dict[str, Any]:
            queryset = ProductFilter(data=clean, queryset=self._repo.list()).qs
            return paginate(queryset.order_by("-created_at"), page, per_page, _serialize)

        params = {"page": page, "per_page": per_page, "filters": clean}
        return self._cache.resolve(f"{CACHE_PREFIX}index", params, produce)

    def list_public_products(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        page: Any = 1,
        per_page: Any = 12,
        sort_by: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Cached storefront listing: active products with stock on hand."""
        clean = _filter_params(filters)
        clean.pop("is_active", None)
        per_page = clamp_per_page(per_page, default=12)
        sort_by = sort_by if sort_by in PUBLIC_SORTS else "name"

        def produce() -> Dict[str, Any]:
            base = self._repo.list({"is_active": True, "stock_quantity__gt": 0})
            queryset = ProductFilter(data=clean, queryset=base).qs
            ordered = queryset.order_by(*PUBLIC_SORTS[sort_by], "pk")
            return paginate(ordered, page, per_page, _serialize)

        params = {
            "page": page,
            "per_page": per_page,
            "filters": {**clean, "sort_by": sort_by},
        }
        return self._cache.resolve(f"{CACHE_PREFIX}public_index", params, produce)

    def get_public_product(self, slug: str) -> Dict[str, Any]:
        """Cached storefront product detail by slug.

        A missing product is cached as ``None`` like any other result.

        Raises:
            ProductNotFound: if no active product has this slug.
        """

        def produce() -> Optional[Dict[str, Any]]:
            product = self._repo.get_by_slug(slug, active_only=True)
            return _serialize(product) if product else None

        payload = self._cache.resolve(
            f"{CACHE_PREFIX}public_show", {"slug": slug}, produce
        )
        if payload is None:
            raise ProductNotFound(f"Product '{slug}' not found.")
        return payload

    def categories_for_select(self) -> List[Dict[str, Any]]:
        """Active parent categories, each followed by its active children."""

        def produce() -> List[Dict[str, Any]]:
            categories = self._repo.active_categories()
            grouped: List[Dict[str, Any]] = []
            for parent in (c for c in categories if c.parent_id is None):
                grouped.append(_category_option(parent, level=0))
                grouped.extend(
                    _category_option(child, level=1)
                    for child in categories
                    if child.parent_id == parent.id
                )
            return grouped

        return self._cache.resolve(f"{CACHE_PREFIX}categories_select", None, produce)

    def validate_cart_stock(
        self, items: Iterable[Tuple[UUID | str, int]]
    ) -> Dict[str, Any]:
        """Non-locking availability report for a cart (never cached)."""
        results = self._ledger.check_availability(items)
        valid = all(result.valid for result in results)
        message = "All items are available" if valid else "Some items have stock issues"
        return {
            "valid": valid,
            "message": message,
            "items": [result.to_dict() for result in results],
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_category(self, category_id: Optional[UUID]):
        if category_id is None:
            return None
        category = self._repo.get_category(str(category_id))
        if not category:
            raise CategoryNotFound(f"Category {category_id} not found.")
        return category

    def _invalidate(self, *identifiers: Any) -> None:
        self._cache.invalidate_item(CACHE_PREFIX, *dict.fromkeys(identifiers))
        self._cache.invalidate_listing(CACHE_PREFIX)
        self._cache.invalidate(CATEGORIES_CACHE_PATTERN)


def _canonical_id(id: Any) -> str:
    """Hyphenated lowercase form, the one product writes invalidate."""
    try:
        return str(UUID(str(id)))
    except ValueError:
        raise ProductNotFound(f"Product {id} not found.") from None


def _filter_params(filters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    filters = filters or {}
    return catalog_params(**{name: filters.get(name) for name in PRODUCT_FILTER_PARAMS})


def _category_option(category, level: int) -> Dict[str, Any]:
    return {
        "id": str(category.id),
        "name": category.name,
        "value": str(category.id),
        "label": category.name,
        "slug": category.slug,
        "level": level,
    }
