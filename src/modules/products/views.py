"""Product API views.

Exposes the ``ProductService`` via HTTP using DRF ViewSets:

- ``ProductViewSet``: admin catalog CRUD (JWT required).
- ``PublicProductViewSet``: storefront listing and detail by slug.
- ``PublicCategoryView`` / ``CartStockValidationView``: storefront helpers.

Domain exceptions are caught and translated into HTTP status codes;
anything else propagates to DRF.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import ViewSet

from modules.products.dtos import CreateProductDTO, UpdateProductDTO
from modules.products.exceptions import (
    CategoryNotFound,
    InvalidPricing,
    ProductAlreadyExists,
    ProductNotFound,
)
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import (
    CreateProductSerializer,
    UpdateProductSerializer,
    ValidateCartSerializer,
)
from modules.products.services import ProductService


def _product_service() -> ProductService:
    return ProductService(repository=ProductDjangoRepository())


def _not_found() -> Response:
    return Response(
        {"detail": "Product not found."},
        status=status.HTTP_404_NOT_FOUND,
    )


class ProductViewSet(ViewSet):
    """Admin catalog endpoints.

    Reads are served through the catalog cache; writes invalidate it.
    All ORM access goes through the service/repository layer.
    """

    throttle_scope = "admin"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _product_service()

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/products/"""
        params = request.query_params
        payload = self._service.list_products(
            filters=params,
            page=params.get("page", 1),
            per_page=params.get("per_page", 15),
        )
        return Response(payload)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        if pk is None:
            return _not_found()
        try:
            payload = self._service.get_product(pk)
        except ProductNotFound:
            return _not_found()
        return Response(payload)

    @action(detail=False, methods=["get"])
    def categories(self, request: Request) -> Response:
        """GET /api/v1/products/categories/"""
        return Response(self._service.categories_for_select())

    # ------------------------------------------------------------------
    # Create / Update / Destroy
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        serializer = CreateProductSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateProductDTO(**serializer.validated_data)
        except (PydanticValidationError, ValueError) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )

        try:
            product = self._service.create_product(dto)
        except ProductAlreadyExists as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_409_CONFLICT,
            )
        except CategoryNotFound as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )

        return Response(
            self._service.get_product(str(product.id)),
            status=status.HTTP_201_CREATED,
        )

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/products/{pk}/"""
        if pk is None:
            return _not_found()

        serializer = UpdateProductSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        clear_sale_price = "sale_price" in data and data["sale_price"] is None

        try:
            dto = UpdateProductDTO(**data, clear_sale_price=clear_sale_price)
        except (PydanticValidationError, ValueError) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )

        try:
            product = self._service.update_product(pk, dto)
        except ProductNotFound:
            return _not_found()
        except ProductAlreadyExists as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_409_CONFLICT,
            )
        except (CategoryNotFound, InvalidPricing) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )

        return Response(self._service.get_product(str(product.id)))

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/"""
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/"""
        if pk is None:
            return _not_found()
        try:
            self._service.delete_product(pk)
        except ProductNotFound:
            return _not_found()
        return Response(status=status.HTTP_204_NO_CONTENT)


class PublicProductViewSet(ViewSet):
    """Storefront catalog: no authentication, cached reads only."""

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "storefront"
    lookup_field = "slug"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _product_service()

    def list(self, request: Request) -> Response:
        """GET /api/v1/public/products/"""
        params = request.query_params
        payload = self._service.list_public_products(
            filters=params,
            page=params.get("page", 1),
            per_page=params.get("per_page", 12),
            sort_by=params.get("sort_by"),
        )
        return Response(payload)

    def retrieve(self, request: Request, slug: str | None = None) -> Response:
        """GET /api/v1/public/products/{slug}/"""
        if slug is None:
            return _not_found()
        try:
            payload = self._service.get_public_product(slug)
        except ProductNotFound:
            return _not_found()
        return Response(payload)


class PublicCategoryView(APIView):
    """GET /api/v1/public/categories/"""

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "storefront"

    def get(self, request: Request) -> Response:
        return Response(_product_service().categories_for_select())


class CartStockValidationView(APIView):
    """POST /api/v1/public/cart/validate-stock/

    Advisory pre-checkout report; the authoritative check happens under
    lock when the order is placed.
    """

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "storefront"

    def post(self, request: Request) -> Response:
        serializer = ValidateCartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        items = [
            (item["product_id"], item["quantity"])
            for item in serializer.validated_data["items"]
        ]
        return Response(_product_service().validate_cart_stock(items))
