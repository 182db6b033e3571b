"""Cart domain exceptions."""

from __future__ import annotations


class CartItemNotFound(Exception):
    """The cart line does not exist or belongs to another user."""
