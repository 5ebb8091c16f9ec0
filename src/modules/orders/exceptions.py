"""Order domain exceptions.

Raised by the placement engine and the state machine when business rules
are violated.  Each carries a stable ``code`` tag; the API layer (Views)
catches these and translates them into HTTP responses.
"""

from __future__ import annotations


class OrderError(Exception):
    """Base class for order-side failures."""

    code = "internal"


class ProductUnavailable(OrderError):
    """A cart line references a product that is missing, inactive or sold out."""

    code = "unavailable"

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product with ID {product_id} is not available")
        self.product_id = str(product_id)


class InsufficientStock(OrderError):
    """Not enough stock on hand to fulfil a cart line."""

    code = "insufficient-stock"

    def __init__(self, product_name: str, available: int, requested: int) -> None:
        super().__init__(
            f"Insufficient stock for {product_name}. "
            f"Available: {available}, Requested: {requested}"
        )
        self.product_name = product_name
        self.available = available
        self.requested = requested


class InvalidStatusTransition(OrderError):
    """The requested status change is not in the transition table."""

    code = "illegal-transition"

    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(
            f"Cannot change status from '{from_status}' to '{to_status}'. "
            "Invalid status transition."
        )
        self.from_status = from_status
        self.to_status = to_status


class OrderDeletionBlocked(OrderError):
    """Shipped and delivered orders cannot be deleted."""

    code = "delete-blocked"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "Cannot delete orders that have been shipped or delivered. "
            "Please cancel the order first."
        )


class OrderNotFound(OrderError):
    """The requested order does not exist."""

    code = "not-found"


class OrderProcessingError(OrderError):
    """An unexpected persistence failure; the transaction was rolled back."""

    code = "internal"
