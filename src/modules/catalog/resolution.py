"""Price-and-stock resolution shared by cart, checkout and settlement.

A line (cart entry or order line) references a product and, optionally, a
``VariantSelector``.  :func:`resolve_stock_unit` is the single place that
turns that pair into the counter and price that govern it.  There is no
silent fallback to the product counter: a selector that matches nothing
is an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Mapping, Optional
from uuid import UUID

from modules.catalog.exceptions import VariantNotFound

if TYPE_CHECKING:
    from modules.catalog.models import Product


@dataclass(frozen=True)
class VariantSelector:
    """Tagged reference to a product variant, identified by SKU."""

    sku: str

    def __post_init__(self) -> None:
        normalised = (self.sku or "").strip().upper()
        if not normalised:
            raise ValueError("Variant selector requires a non-empty SKU.")
        object.__setattr__(self, "sku", normalised)

    @classmethod
    def parse(cls, raw: Any) -> Optional[VariantSelector]:
        """Normalise the shapes a variant reference may arrive in.

        Accepts ``None`` / ``""`` (no variant), an existing selector, a bare
        SKU string, or a mapping with a ``sku`` key.
        """
        if raw is None or raw == "":
            return None
        if isinstance(raw, VariantSelector):
            return raw
        if isinstance(raw, str):
            return cls(raw)
        if isinstance(raw, Mapping):
            sku = raw.get("sku")
            if sku:
                return cls(str(sku))
        raise ValueError(f"Unrecognised variant reference: {raw!r}")

    @staticmethod
    def to_sku(selector: Optional[VariantSelector]) -> Optional[str]:
        """Column value for a selector (``None`` for the product counter)."""
        return selector.sku if selector else None

    def __str__(self) -> str:
        return self.sku


@dataclass(frozen=True)
class StockUnit:
    """The counter and price that govern one line."""

    product_id: UUID
    variant_sku: Optional[str]
    price: Decimal
    stock_quantity: int

    @property
    def selector(self) -> Optional[VariantSelector]:
        return VariantSelector(self.variant_sku) if self.variant_sku else None

    def can_supply(self, quantity: int) -> bool:
        return self.stock_quantity >= quantity


def resolve_stock_unit(
    product: Product, selector: Optional[VariantSelector]
) -> StockUnit:
    """Resolve which counter and price govern ``product`` + ``selector``.

    Raises:
        VariantNotFound: the selector names no variant of the product, the
            product has variants but no selector was given, or the product
            has no variants but a selector was given.
    """
    variants = list(product.variants.all())

    if selector is None:
        if variants:
            raise VariantNotFound(
                f"Product {product.id} has variants; a variant must be selected."
            )
        return StockUnit(
            product_id=product.id,
            variant_sku=None,
            price=product.price,
            stock_quantity=product.stock_quantity,
        )

    for variant in variants:
        if variant.sku == selector.sku:
            return StockUnit(
                product_id=product.id,
                variant_sku=variant.sku,
                price=variant.price,
                stock_quantity=variant.stock_quantity,
            )

    raise VariantNotFound(f"Product {product.id} has no variant '{selector.sku}'.")
