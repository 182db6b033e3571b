"""Product repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.catalog.models import Product
    from modules.catalog.resolution import VariantSelector


class IProductRepository(IRepository["Product"]):
    """Repository contract for catalog products and their stock counters."""

    @abstractmethod
    def get_sellable(self, id: UUID | str) -> Optional[Product]:
        """Retrieve an active, non-deleted product with its variants loaded."""

    @abstractmethod
    def get_many(self, ids: Iterable[UUID]) -> Dict[UUID, Product]:
        """Retrieve products (variants prefetched) keyed by id."""

    @abstractmethod
    def decrement_stock(
        self,
        product_id: UUID,
        selector: Optional[VariantSelector],
        quantity: int,
    ) -> bool:
        """Atomically subtract ``quantity`` if at least that much is in stock.

        Returns ``False`` (and changes nothing) when the counter holds fewer
        than ``quantity`` units or does not exist.
        """
