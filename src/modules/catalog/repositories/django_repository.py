"""Django ORM implementation of the Product repository.

Stock decrements are a single conditional ``UPDATE``::

    UPDATE ... SET stock_quantity = stock_quantity - q
    WHERE id = ... AND stock_quantity >= q

so the check and the write are one statement under the database's own
isolation; no read-modify-write happens in Python and concurrent
instances of the service cannot oversell a counter.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.catalog.models import Product, ProductStatus, ProductVariant
from modules.catalog.repositories.interfaces import IProductRepository
from modules.catalog.resolution import VariantSelector

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return Product.objects.prefetch_related("variants").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_sellable(self, id: UUID | str) -> Optional[Product]:
        try:
            return (
                Product.objects.alive()
                .filter(id=id, status=ProductStatus.ACTIVE)
                .prefetch_related("variants")
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_many(self, ids: Iterable[UUID]) -> Dict[UUID, Product]:
        products = Product.objects.prefetch_related("variants").filter(id__in=set(ids))
        return {product.id: product for product in products}

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        queryset = Product.objects.alive().prefetch_related("variants")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    def decrement_stock(
        self,
        product_id: UUID,
        selector: Optional[VariantSelector],
        quantity: int,
    ) -> bool:
        now = timezone.now()
        if selector is None:
            updated = Product.objects.filter(
                id=product_id, stock_quantity__gte=quantity
            ).update(stock_quantity=F("stock_quantity") - quantity, updated_at=now)
        else:
            updated = ProductVariant.objects.filter(
                product_id=product_id,
                sku=selector.sku,
                stock_quantity__gte=quantity,
            ).update(stock_quantity=F("stock_quantity") - quantity, updated_at=now)

        logger.info(
            "product.stock_decrement",
            product_id=str(product_id),
            variant_sku=VariantSelector.to_sku(selector),
            quantity=quantity,
            applied=bool(updated),
        )
        return updated == 1
