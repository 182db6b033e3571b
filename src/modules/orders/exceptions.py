"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.  Stock and variant errors raised during
checkout come from ``modules.catalog.exceptions``.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order does not exist or has been soft-deleted."""


class OrderAccessDenied(Exception):
    """The order belongs to another user."""


class InvalidOrderStatus(Exception):
    """A status transition outside ``VALID_TRANSITIONS`` was attempted."""


class EmptyCart(Exception):
    """Checkout was requested with nothing in the cart."""


class IdempotencyKeyConflict(Exception):
    """The idempotency key was already used by another account."""
