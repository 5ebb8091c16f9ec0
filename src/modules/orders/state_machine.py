"""Order lifecycle state machine.

Guards every status change against ``VALID_TRANSITIONS`` and every
deletion against ``DELETE_BLOCKED_STATES``.  Both operations lock the
order row first and evaluate the guard on the locked row, so two
concurrent admins cannot both act on the same stale status.

Money fields are never touched here.  Deleting an order does not return
its stock to the catalog.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, NamedTuple

import structlog
from django.db import DatabaseError, transaction
from django.utils import timezone

from modules.orders.constants import (
    DELETE_BLOCKED_STATES,
    OrderStatus,
    can_transition,
)
from modules.orders.exceptions import (
    InvalidStatusTransition,
    OrderDeletionBlocked,
    OrderNotFound,
    OrderProcessingError,
)

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

UPDATE_FAILED_MESSAGE = "An error occurred while updating the order status."
DELETE_FAILED_MESSAGE = "An error occurred while deleting the order."


class DeletionResult(NamedTuple):
    order_number: str
    items_deleted: int


def transition_fields(order: Order, new_status: str, now=None) -> Dict[str, Any]:
    """Columns written by a legal transition of *order* to *new_status*."""
    now = now or timezone.now()
    fields: Dict[str, Any] = {"status": new_status}
    if new_status == OrderStatus.SHIPPED and order.shipped_at is None:
        fields["shipped_at"] = now
    elif new_status == OrderStatus.DELIVERED:
        fields["delivered_at"] = now
        if order.shipped_at is None:
            fields["shipped_at"] = now
    return fields


class OrderStateMachine:
    """Guarded status transitions and deletion for orders."""

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    def update_status(self, order_number: str, new_status: str) -> Order:
        """Move the order to *new_status* if the transition table allows it.

        Raises:
            OrderNotFound: order does not exist.
            InvalidStatusTransition: the pair is not in the table, or
                *new_status* is not a known status.
            OrderProcessingError: the guarded write failed.
        """
        log = logger.bind(order_number=order_number, new_status=new_status)

        try:
            with transaction.atomic():
                order = self._order_repo.get_for_update(order_number)
                if not order:
                    raise OrderNotFound(f"Order {order_number} not found.")

                old_status = order.status
                if not can_transition(old_status, new_status):
                    log.info("order.invalid_transition", current_status=old_status)
                    raise InvalidStatusTransition(old_status, new_status)

                self._order_repo.update_fields(
                    order, transition_fields(order, new_status)
                )
        except DatabaseError as exc:
            log.exception("order.status_update_failed")
            raise OrderProcessingError(UPDATE_FAILED_MESSAGE) from exc

        log.info("order.status_updated", old_status=old_status)
        return order

    def delete_order(self, order_number: str) -> DeletionResult:
        """Delete an order and its items unless it has shipped.

        Raises:
            OrderNotFound: order does not exist.
            OrderDeletionBlocked: order is shipped or delivered.
            OrderProcessingError: the delete failed.
        """
        log = logger.bind(order_number=order_number)

        try:
            with transaction.atomic():
                order = self._order_repo.get_for_update(order_number)
                if not order:
                    raise OrderNotFound(f"Order {order_number} not found.")

                if order.status in DELETE_BLOCKED_STATES:
                    log.info("order.delete_blocked", status=order.status)
                    raise OrderDeletionBlocked()

                items_deleted = self._order_repo.delete_with_items(order)
        except DatabaseError as exc:
            log.exception("order.delete_failed")
            raise OrderProcessingError(DELETE_FAILED_MESSAGE) from exc

        log.info("order.removed", items_deleted=items_deleted)
        return DeletionResult(order_number, items_deleted)
