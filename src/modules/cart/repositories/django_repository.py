"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError

from modules.cart.models import CartItem
from modules.cart.repositories.interfaces import ICartRepository
from modules.catalog.resolution import VariantSelector

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    """Concrete Cart repository backed by Django ORM."""

    def _queryset(self):
        return CartItem.objects.select_related("product").prefetch_related(
            "product__variants"
        )

    def get_by_id(self, id: str) -> Optional[CartItem]:
        try:
            return self._queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[CartItem]:
        queryset = self._queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_owner(self, owner_id: int) -> List[CartItem]:
        return list(self._queryset().filter(owner_id=owner_id))

    def get_for_owner(self, owner_id: int, item_id: UUID | str) -> Optional[CartItem]:
        try:
            return self._queryset().filter(owner_id=owner_id, id=item_id).first()
        except (ValueError, ValidationError):
            return None

    def find_line(
        self,
        owner_id: int,
        product_id: UUID,
        selector: Optional[VariantSelector],
    ) -> Optional[CartItem]:
        queryset = self._queryset().filter(owner_id=owner_id, product_id=product_id)
        if selector is None:
            queryset = queryset.filter(variant_sku__isnull=True)
        else:
            queryset = queryset.filter(variant_sku=selector.sku)
        return queryset.first()

    def save(self, entity: CartItem) -> CartItem:
        entity.save()
        logger.info(
            "cart.item_saved",
            owner_id=entity.owner_id,
            item_id=str(entity.id),
            quantity=entity.quantity,
        )
        return entity

    def delete(self, item: CartItem) -> None:
        logger.info("cart.item_removed", owner_id=item.owner_id, item_id=str(item.id))
        item.delete()

    def clear(self, owner_id: int) -> int:
        count, _ = CartItem.objects.filter(owner_id=owner_id).delete()
        logger.info("cart.cleared", owner_id=owner_id, removed=count)
        return count
