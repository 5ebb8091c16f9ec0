"""Product URL configuration.

Admin catalog under ``products/``; storefront endpoints under ``public/``.
"""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.products.views import (
    CartStockValidationView,
    ProductViewSet,
    PublicCategoryView,
    PublicProductViewSet,
)

router = DefaultRouter(trailing_slash=True)
router.register("products", ProductViewSet, basename="product")
router.register("public/products", PublicProductViewSet, basename="public-product")

urlpatterns = [
    path(
        "public/categories/",
        PublicCategoryView.as_view(),
        name="public-categories",
    ),
    path(
        "public/cart/validate-stock/",
        CartStockValidationView.as_view(),
        name="public-cart-validate-stock",
    ),
    *router.urls,
]
