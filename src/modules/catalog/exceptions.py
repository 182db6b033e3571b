"""Catalog domain exceptions.

Raised while resolving or mutating product stock.  Checkout reports them
to the shopper; settlement treats them as a failed, retryable transition.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for catalog lookup and stock errors."""


class ProductNotFound(CatalogError):
    """The product does not exist, was soft-deleted, or is not sellable."""


class VariantNotFound(CatalogError):
    """The variant selector does not identify a stock unit of the product.

    Also raised when a product with variants is referenced without a
    selector, or a product without variants is referenced with one.
    """


class InsufficientStock(CatalogError):
    """The stock counter holds fewer units than requested."""
