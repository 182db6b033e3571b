"""Unit tests for CheckoutService.

Checkout locks prices and creates a pending order; it must never touch
stock counters.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.cart.models import CartItem
from modules.cart.repositories import CartDjangoRepository
from modules.catalog.exceptions import InsufficientStock, ProductNotFound, VariantNotFound
from modules.catalog.models import Product, ProductStatus, ProductVariant
from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import EmptyCart, IdempotencyKeyConflict
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import CheckoutService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return CheckoutService(
        order_repository=OrderDjangoRepository(),
        cart_repository=CartDjangoRepository(),
    )


def _add(owner, product, quantity=1, variant_sku=None):
    return CartItem.objects.create(
        owner=owner, product=product, quantity=quantity, variant_sku=variant_sku
    )


class TestCreateOrder:
    def test_creates_pending_order_at_locked_prices(self, service, user, make_product):
        plain = make_product(title="Mug", price="4.50", stock=10)
        tee = make_product(title="Tee", price="10.00", variants=[("TEE-M", "12.00", 5)])
        _add(user, plain, 2)
        _add(user, tee, 1, "TEE-M")

        order = service.create_order(CreateOrderDTO(owner_id=user.pk))

        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.payment_ref is None
        assert order.total_amount == Decimal("21.00")
        prices = {line.title: line.price_at_purchase for line in order.lines.all()}
        assert prices == {"Mug": Decimal("4.50"), "Tee": Decimal("12.00")}

    def test_does_not_touch_stock(self, service, user, make_product):
        plain = make_product(stock=3)
        tee = make_product(title="Tee", variants=[("TEE-M", "12.00", 5)])
        _add(user, plain, 3)
        _add(user, tee, 2, "TEE-M")

        service.create_order(CreateOrderDTO(owner_id=user.pk))

        assert Product.objects.get(id=plain.id).stock_quantity == 3
        assert ProductVariant.objects.get(product=tee).stock_quantity == 5

    def test_clears_cart_and_records_history(self, service, user, make_product):
        _add(user, make_product())

        order = service.create_order(CreateOrderDTO(owner_id=user.pk))

        assert not CartItem.objects.filter(owner=user).exists()
        history = list(order.status_history.all())
        assert len(history) == 1
        assert history[0].new_status == OrderStatus.PENDING
        assert history[0].old_status is None

    def test_writes_order_created_to_outbox(self, service, user, make_product):
        _add(user, make_product())

        order = service.create_order(CreateOrderDTO(owner_id=user.pk))

        event = OutboxEvent.objects.get(aggregate_id=str(order.id))
        assert event.event_type == "OrderCreated"
        assert event.payload["owner_id"] == user.pk

    def test_later_price_change_does_not_reprice(self, service, user, make_product):
        product = make_product(price="10.00")
        _add(user, product, 2)
        order = service.create_order(CreateOrderDTO(owner_id=user.pk))

        Product.objects.filter(id=product.id).update(price=Decimal("99.00"))

        order.refresh_from_db()
        assert order.total_amount == Decimal("20.00")
        assert order.lines.get().price_at_purchase == Decimal("10.00")


class TestCheckoutRejections:
    def test_empty_cart(self, service, user):
        with pytest.raises(EmptyCart):
            service.create_order(CreateOrderDTO(owner_id=user.pk))

    def test_insufficient_stock_leaves_cart_intact(self, service, user, make_product):
        _add(user, make_product(stock=1), 2)

        with pytest.raises(InsufficientStock):
            service.create_order(CreateOrderDTO(owner_id=user.pk))

        assert Order.objects.count() == 0
        assert CartItem.objects.filter(owner=user).count() == 1

    def test_variant_that_no_longer_exists(self, service, user, make_product):
        tee = make_product(variants=[("TEE-M", "12.00", 5)])
        _add(user, tee, 1, "TEE-M")
        ProductVariant.objects.filter(product=tee).delete()

        with pytest.raises(VariantNotFound):
            service.create_order(CreateOrderDTO(owner_id=user.pk))

    def test_product_taken_off_sale(self, service, user, make_product):
        product = make_product()
        _add(user, product)
        Product.objects.filter(id=product.id).update(status=ProductStatus.INACTIVE)

        with pytest.raises(ProductNotFound):
            service.create_order(CreateOrderDTO(owner_id=user.pk))


class TestIdempotency:
    def test_same_key_replays_existing_order(self, service, user, make_product):
        product = make_product()
        _add(user, product)
        first = service.create_order(CreateOrderDTO(owner_id=user.pk, idempotency_key="k-1"))

        _add(user, product)
        second = service.create_order(CreateOrderDTO(owner_id=user.pk, idempotency_key="k-1"))

        assert second.id == first.id
        assert Order.objects.count() == 1
        assert CartItem.objects.filter(owner=user).count() == 1

    def test_key_of_another_account_conflicts(self, service, user, other_user, make_product):
        product = make_product()
        _add(user, product)
        service.create_order(CreateOrderDTO(owner_id=user.pk, idempotency_key="shared"))
        _add(other_user, product)

        with pytest.raises(IdempotencyKeyConflict):
            service.create_order(
                CreateOrderDTO(owner_id=other_user.pk, idempotency_key="shared")
            )

    def test_blank_key_is_ignored(self):
        assert CreateOrderDTO(owner_id=1, idempotency_key="   ").idempotency_key is None
