"""Cart DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.catalog.resolution import VariantSelector


class AddCartItemDTO(BaseModel):
    """Input for adding a product (optionally a variant) to a cart.

    ``variant`` is the raw reference sent by the client; ``selector``
    normalises it through :class:`VariantSelector`.
    """

    model_config = ConfigDict(frozen=True)

    owner_id: int
    product_id: UUID
    quantity: int = 1
    variant: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @property
    def selector(self) -> Optional[VariantSelector]:
        return VariantSelector.parse(self.variant)


class UpdateCartItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner_id: int
    item_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v
