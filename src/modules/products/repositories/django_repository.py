"""Django ORM implementation of the Product repository.

Satisfies ``IProductRepository`` using Django's QuerySet API.
Error handling follows the Null Object pattern: methods return ``None``
instead of raising HTTP-level exceptions. The Service Layer decides
how to translate a missing entity into an API response.

Soft-deleted products are invisible to every read here.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.products.models import Category, Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a live product by primary key.

        Returns ``None`` for non-existent, deleted or malformed IDs.
        """
        try:
            return (
                Product.objects.alive()
                .select_related("category")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> models.QuerySet[Product]:
        """Live products with optional Django ORM look-ups.

        Examples of valid filters::

            {"is_active": True, "stock_quantity__gt": 0}
            {"category_id": "..."}
        """
        queryset = Product.objects.alive().select_related("category")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""
        entity.save()
        logger.info(
            "product.saved",
            product_id=str(entity.id),
            sku=entity.sku,
        )
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete a product by ID.

        Returns ``True`` if the product was found and soft-deleted,
        ``False`` if no live product exists with the given ID.
        """
        product = self.get_for_update(id)
        if not product:
            return False
        product.delete()
        logger.info("product.soft_deleted", product_id=str(id))
        return True

    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU, deleted ones included (SKU stays unique)."""
        return Product.objects.filter(sku=sku.strip().upper()).first()

    def get_by_slug(self, slug: str, active_only: bool = False) -> Optional[Product]:
        queryset = Product.objects.alive().select_related("category").filter(slug=slug)
        if active_only:
            queryset = queryset.filter(is_active=True)
        return queryset.first()

    def get_for_update(self, id: str) -> Optional[Product]:
        """Retrieve a live product with a row-level lock.

        Must be called inside ``transaction.atomic``.
        """
        try:
            return (
                Product.objects.alive()
                .select_for_update()
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_category(self, id: str) -> Optional[Category]:
        try:
            return Category.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def active_categories(self) -> List[Category]:
        return list(
            Category.objects.filter(is_active=True).order_by("sort_order", "name")
        )
