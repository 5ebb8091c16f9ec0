"""Order domain constants.

Defines status choices and the legal status transitions for the order
state machine.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


VALID_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES: frozenset[str] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
)

# Goods already in the fulfilment pipeline; independent of the table above.
DELETE_BLOCKED_STATES: frozenset[str] = frozenset(
    {OrderStatus.SHIPPED, OrderStatus.DELIVERED}
)

ORDER_NUMBER_MAX_RETRIES = 5


def can_transition(from_status: str, to_status: str) -> bool:
    """Return ``True`` if *from_status* -> *to_status* is a legal transition."""
    return to_status in VALID_TRANSITIONS.get(from_status, frozenset())


def allowed_transitions(from_status: str) -> list[str]:
    """Legal targets for *from_status*, in lifecycle order."""
    allowed = VALID_TRANSITIONS.get(from_status, frozenset())
    return [value for value in OrderStatus.values if value in allowed]
