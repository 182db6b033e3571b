"""Cart snapshot: the per-user list of lines pending purchase.

Each ``CartItem`` references a product and, through ``variant_sku``, the
variant it draws from (``NULL`` = the product's own counter).  A user holds
at most one row per product + variant; adding the same unit again merges
quantities.
"""

from __future__ import annotations

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from modules.catalog.resolution import VariantSelector
from modules.core.models import BaseModel


class CartItem(BaseModel):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    variant_sku = models.CharField(  # noqa: DJ01
        max_length=64, null=True, blank=True, default=None
    )
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )

    class Meta:
        db_table = "cart_items"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "product", "variant_sku"],
                condition=models.Q(variant_sku__isnull=False),
                name="cart_items_owner_variant_unique",
            ),
            models.UniqueConstraint(
                fields=["owner", "product"],
                condition=models.Q(variant_sku__isnull=True),
                name="cart_items_owner_product_unique",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="cart_items_quantity_positive",
            ),
        ]

    @property
    def selector(self) -> VariantSelector | None:
        return VariantSelector.parse(self.variant_sku)

    def __str__(self) -> str:
        suffix = f" [{self.variant_sku}]" if self.variant_sku else ""
        return f"{self.product_id}{suffix} x{self.quantity}"
