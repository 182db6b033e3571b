"""Cart repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.cart.models import CartItem
    from modules.catalog.resolution import VariantSelector


class ICartRepository(IRepository["CartItem"]):
    """Repository contract for a user's cart snapshot."""

    @abstractmethod
    def list_for_owner(self, owner_id: int) -> List[CartItem]:
        """Cart lines of ``owner_id`` with products and variants loaded."""

    @abstractmethod
    def get_for_owner(self, owner_id: int, item_id: UUID | str) -> Optional[CartItem]:
        """A single line, only if it belongs to ``owner_id``."""

    @abstractmethod
    def find_line(
        self,
        owner_id: int,
        product_id: UUID,
        selector: Optional[VariantSelector],
    ) -> Optional[CartItem]:
        """The line for a given product + variant, if already in the cart."""

    @abstractmethod
    def delete(self, item: CartItem) -> None:
        """Remove one line."""

    @abstractmethod
    def clear(self, owner_id: int) -> int:
        """Remove every line of ``owner_id``; returns the number removed."""
