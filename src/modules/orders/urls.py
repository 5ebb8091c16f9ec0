"""Order URL configuration.

Admin order management under ``orders/``; anonymous checkout under
``public/orders/``.
"""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.orders.views import OrderViewSet, PlaceOrderView

router = DefaultRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")

urlpatterns = [
    path("public/orders/", PlaceOrderView.as_view(), name="public-order-create"),
    *router.urls,
]
