"""Cart DRF serializers for API input/output."""

from __future__ import annotations

from rest_framework import serializers

from modules.cart.models import CartItem
from modules.catalog.exceptions import VariantNotFound
from modules.catalog.resolution import resolve_stock_unit

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class AddCartItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    variant = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, default=None
    )


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class CartItemSerializer(serializers.ModelSerializer):
    """Cart line with the current (not locked) unit price.

    ``unit_price`` is ``null`` when the line's variant no longer resolves;
    checkout will reject such a line.
    """

    product_title = serializers.CharField(source="product.title", read_only=True)
    unit_price = serializers.SerializerMethodField()

    class Meta:
        model = CartItem
        fields = [
            "id",
            "product_id",
            "product_title",
            "variant_sku",
            "quantity",
            "unit_price",
        ]
        read_only_fields = fields

    def get_unit_price(self, obj: CartItem) -> str | None:
        try:
            unit = resolve_stock_unit(obj.product, obj.selector)
        except VariantNotFound:
            return None
        return str(unit.price)
