"""Cart service layer (Use Cases).

The cart is a mutable snapshot; nothing here touches stock counters.
Stock is only compared against, using the same ``resolve_stock_unit``
that checkout and settlement use, so a line that can be added to the
cart names a unit the later steps will also recognise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import structlog
from django.db import transaction

from modules.cart.exceptions import CartItemNotFound
from modules.cart.models import CartItem
from modules.catalog.exceptions import InsufficientStock, ProductNotFound
from modules.catalog.resolution import VariantSelector, resolve_stock_unit

if TYPE_CHECKING:
    from modules.cart.dtos import AddCartItemDTO, UpdateCartItemDTO
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.catalog.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CartService:
    """Application service for cart use-cases."""

    def __init__(
        self,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._cart_repo = cart_repository
        self._product_repo = product_repository

    def get_cart(self, owner_id: int) -> List[CartItem]:
        return self._cart_repo.list_for_owner(owner_id)

    @transaction.atomic
    def add_item(self, dto: AddCartItemDTO) -> CartItem:
        """Add a unit to the cart, merging with an existing line.

        Raises:
            ProductNotFound: product missing or not sellable.
            VariantNotFound: the variant reference does not resolve.
            InsufficientStock: the merged quantity exceeds current stock.
        """
        log = logger.bind(owner_id=dto.owner_id, product_id=str(dto.product_id))

        product = self._product_repo.get_sellable(dto.product_id)
        if not product:
            raise ProductNotFound(f"Product {dto.product_id} not found.")

        selector = dto.selector
        unit = resolve_stock_unit(product, selector)

        item = self._cart_repo.find_line(dto.owner_id, product.id, selector)
        quantity = dto.quantity + (item.quantity if item else 0)
        if not unit.can_supply(quantity):
            log.warning(
                "cart.insufficient_stock",
                requested=quantity,
                available=unit.stock_quantity,
            )
            raise InsufficientStock(
                f"Product {product.id}: requested {quantity}, "
                f"available {unit.stock_quantity}."
            )

        if item is None:
            item = CartItem(
                owner_id=dto.owner_id,
                product=product,
                variant_sku=VariantSelector.to_sku(selector),
                quantity=quantity,
            )
        else:
            item.quantity = quantity

        return self._cart_repo.save(item)

    @transaction.atomic
    def update_item(self, dto: UpdateCartItemDTO) -> CartItem:
        """Set the quantity of one line.

        Raises:
            CartItemNotFound: line missing or owned by someone else.
            VariantNotFound: the line's variant no longer exists.
            InsufficientStock: quantity exceeds current stock.
        """
        item = self._cart_repo.get_for_owner(dto.owner_id, dto.item_id)
        if not item:
            raise CartItemNotFound(f"Cart item {dto.item_id} not found.")

        unit = resolve_stock_unit(item.product, item.selector)
        if not unit.can_supply(dto.quantity):
            raise InsufficientStock(
                f"Product {item.product_id}: requested {dto.quantity}, "
                f"available {unit.stock_quantity}."
            )

        item.quantity = dto.quantity
        return self._cart_repo.save(item)

    @transaction.atomic
    def remove_item(self, owner_id: int, item_id: str) -> None:
        item = self._cart_repo.get_for_owner(owner_id, item_id)
        if not item:
            raise CartItemNotFound(f"Cart item {item_id} not found.")
        self._cart_repo.delete(item)

    def clear(self, owner_id: int) -> int:
        return self._cart_repo.clear(owner_id)
