"""Product repository interface.

Extends ``IRepository[Product]`` with the look-ups the catalog service
needs: SKU uniqueness, public slug access and category groupings.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Category, Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU."""

    @abstractmethod
    def get_by_slug(self, slug: str, active_only: bool = False) -> Optional[Product]:
        """Retrieve a live product by slug."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Product]:
        """Retrieve a live product with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def get_category(self, id: str) -> Optional[Category]:
        """Retrieve a category by primary key."""

    @abstractmethod
    def active_categories(self) -> List[Category]:
        """Active categories ordered by ``sort_order``."""
