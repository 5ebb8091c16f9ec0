"""Catalog and stock domain exceptions.

Raised by the Service Layer and the Stock Ledger when business rules are
violated.  The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class ProductAlreadyExists(Exception):
    """A product with the same SKU already exists."""


class ProductNotFound(Exception):
    """The requested product does not exist or has been soft-deleted."""


class CategoryNotFound(Exception):
    """The referenced category does not exist."""


class StockReservationConflict(Exception):
    """A guarded stock decrement found fewer units than requested.

    Under row locking this only happens if stock was changed outside the
    ledger; on stores without locks it is the compare-and-swap failure.
    """

    def __init__(self, message: str, available: int = 0, requested: int = 0) -> None:
        super().__init__(message)
        self.available = available
        self.requested = requested


class InvalidPricing(Exception):
    """The sale price is not below the list price."""
