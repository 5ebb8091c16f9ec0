"""Order API views.

Exposes the ``OrderService`` and ``OrderStateMachine`` via HTTP.
Order-side exceptions carry a ``code`` tag that selects the HTTP status;
internal failures are answered with a generic message.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import ViewSet

from modules.core.exceptions import GENERIC_ERROR_MESSAGE
from modules.orders.dtos import PlaceOrderDTO
from modules.orders.exceptions import OrderError
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import PlaceOrderSerializer, UpdateOrderStatusSerializer
from modules.orders.services import OrderService, serialize_order
from modules.orders.state_machine import OrderStateMachine

_STATUS_BY_CODE = {
    "unavailable": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "insufficient-stock": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "illegal-transition": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "delete-blocked": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "not-found": status.HTTP_404_NOT_FOUND,
}


def error_response(exc: OrderError) -> Response:
    """Translate an order-side exception into ``{"detail", "code"}``."""
    http_status = _STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    detail = (
        GENERIC_ERROR_MESSAGE
        if http_status == status.HTTP_500_INTERNAL_SERVER_ERROR
        else str(exc)
    )
    return Response({"detail": detail, "code": exc.code}, status=http_status)


class OrderViewSet(ViewSet):
    """Admin order endpoints, looked up by ``order_number``.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    throttle_scope = "admin"
    lookup_field = "order_number"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        repository = OrderDjangoRepository()
        self._service = OrderService(order_repository=repository)
        self._state_machine = OrderStateMachine(order_repository=repository)

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filters: ``search``, ``status``, ``date_from``, ``date_to``,
        ``min_amount``, ``max_amount``; sorting via ``sort_by`` and
        ``sort_order``.
        """
        params = request.query_params
        payload = self._service.list_orders(
            filters=params,
            page=params.get("page", 1),
            per_page=params.get("per_page", 15),
            sort_by=params.get("sort_by"),
            sort_order=params.get("sort_order"),
        )
        return Response(payload)

    def retrieve(self, request: Request, order_number: str | None = None) -> Response:
        """GET /api/v1/orders/{order_number}/"""
        try:
            order = self._service.get_order(order_number or "")
        except OrderError as exc:
            return error_response(exc)
        return Response(serialize_order(order))

    def partial_update(
        self, request: Request, order_number: str | None = None
    ) -> Response:
        """PATCH /api/v1/orders/{order_number}/

        Only ``status`` may change.
        """
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data["status"]

        try:
            self._state_machine.update_status(order_number or "", new_status)
            order = self._service.get_order(order_number or "")
        except OrderError as exc:
            return error_response(exc)

        return Response(
            {
                "message": f"Order status updated to '{new_status}' successfully",
                "order": serialize_order(order),
            }
        )

    def destroy(self, request: Request, order_number: str | None = None) -> Response:
        """DELETE /api/v1/orders/{order_number}/"""
        try:
            result = self._state_machine.delete_order(order_number or "")
        except OrderError as exc:
            return error_response(exc)

        return Response(
            {
                "message": (
                    f"Order {result.order_number} has been successfully deleted "
                    f"along with {result.items_deleted} order items."
                ),
                "order_number": result.order_number,
                "items_deleted": result.items_deleted,
            }
        )


class PlaceOrderView(APIView):
    """POST /api/v1/public/orders/

    Anonymous checkout.  Stock is reserved atomically; rejected carts
    answer 422 with the failing line's message.
    """

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "order_placement"

    def post(self, request: Request) -> Response:
        serializer = PlaceOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = PlaceOrderDTO(**serializer.validated_data)
        except (PydanticValidationError, ValueError) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )

        service = OrderService(order_repository=OrderDjangoRepository())
        try:
            order = service.place_order(dto)
        except OrderError as exc:
            return error_response(exc)

        return Response(
            {"message": "Order created successfully", "order": serialize_order(order)},
            status=status.HTTP_201_CREATED,
        )
