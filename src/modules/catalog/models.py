"""Product and ProductVariant models.

Stock lives in exactly one place per product:
- a product **without** variants uses its own ``stock_quantity``;
- a product **with** variants routes every stock and price decision
  through one of its ``ProductVariant`` rows.

Both counters are ``PositiveIntegerField`` so the database rejects a
negative committed value even if application code misbehaves.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel

logger = structlog.get_logger(__name__)


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class Product(SoftDeleteModel):
    """Catalog product.

    ``price`` and ``stock_quantity`` are authoritative only for products
    without variants; for products with variants they are display values.
    """

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    stock_quantity = models.PositiveIntegerField(default=0)
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        db_table = "products"
        ordering = ["title"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="products_price_non_negative",
            ),
        ]

    @property
    def has_variants(self) -> bool:
        return self.variants.exists()

    @property
    def is_sellable(self) -> bool:
        return self.status == ProductStatus.ACTIVE and not self.is_deleted

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price < 0:
            raise ValidationError({"price": "Price cannot be negative."})

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info("product_created", product_id=str(self.id), title=self.title)

    def __str__(self) -> str:
        return self.title


class ProductVariant(BaseModel):
    """Stock-keeping sub-unit of a product (e.g. size M in red).

    ``sku`` is normalised to uppercase on save and is unique per product;
    it is the value carried by ``VariantSelector`` in carts and order lines.
    """

    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        related_name="variants",
    )
    sku = models.CharField(max_length=64)
    size = models.CharField(max_length=32, blank=True, default="")
    color = models.CharField(max_length=64, blank=True, default="")
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    stock_quantity = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "product_variants"
        ordering = ["sku"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "sku"],
                name="product_variants_product_sku_unique",
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="product_variants_price_non_negative",
            ),
        ]

    def save(self, *args, **kwargs) -> None:
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product} [{self.sku}]"
