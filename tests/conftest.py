import json
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.catalog.models import Product, ProductStatus, ProductVariant
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.payments.gateway import reset_gateway, set_gateway
from modules.payments.gateway.fake_adapter import FakeGateway
from modules.payments.signatures import compute_signature

WEBHOOK_URL = "/api/v1/payments/webhook/"


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _isolated_side_effects(settings, tmp_path):
    """Fresh throttle cache and a throwaway media root for invoices."""
    cache.clear()
    settings.MEDIA_ROOT = str(tmp_path / "media")
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def gateway():
    """Fake payment gateway installed for every test."""
    fake = FakeGateway()
    set_gateway(fake)
    yield fake
    reset_gateway()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@pytest.fixture()
def user():
    return get_user_model().objects.create_user(
        "shopper", email="shopper@example.com", password="shopper-pass-123"
    )


@pytest.fixture()
def other_user():
    return get_user_model().objects.create_user(
        "other", email="other@example.com", password="other-pass-123"
    )


@pytest.fixture()
def staff_user():
    return get_user_model().objects.create_user(
        "manager", email="manager@example.com", password="manager-pass-123", is_staff=True
    )


@pytest.fixture()
def auth_client(api_client, user):
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


# ---------------------------------------------------------------------------
# Catalog & orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product():
    """Factory: ``make_product(title, price, stock, variants=[(sku, price, stock)])``."""

    def _make(
        title="Plain Tee",
        price="10.00",
        stock=10,
        variants=(),
        status=ProductStatus.ACTIVE,
    ):
        product = Product.objects.create(
            title=title,
            price=Decimal(price),
            stock_quantity=stock,
            status=status,
        )
        for sku, variant_price, variant_stock in variants:
            ProductVariant.objects.create(
                product=product,
                sku=sku,
                price=Decimal(variant_price),
                stock_quantity=variant_stock,
            )
        return product

    return _make


@pytest.fixture()
def make_order():
    """Factory for a pending order with the given lines and payment reference.

    ``lines`` is a list of ``(product, quantity, variant_sku, price)``.
    """

    def _make(owner, lines, payment_ref=None):
        order = OrderDjangoRepository().create(
            {
                "owner_id": owner.pk,
                "lines": [
                    {
                        "product_id": product.id,
                        "title": product.title,
                        "variant_sku": variant_sku,
                        "quantity": quantity,
                        "price_at_purchase": Decimal(price),
                    }
                    for product, quantity, variant_sku, price in lines
                ],
            }
        )
        if payment_ref:
            Order.objects.filter(id=order.id).update(payment_ref=payment_ref)
            order.refresh_from_db()
        return order

    return _make


# ---------------------------------------------------------------------------
# Webhook
# ---------------------------------------------------------------------------


@pytest.fixture()
def post_webhook(settings):
    """POST a webhook body, signed with the configured secret unless told otherwise."""

    def _post(payload, signature=None, sign=True):
        body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
        extra = {}
        if sign:
            extra["HTTP_X_PAYSTACK_SIGNATURE"] = signature or compute_signature(
                body, settings.PAYSTACK_SECRET_KEY
            )
        return APIClient().post(
            WEBHOOK_URL, data=body, content_type="application/json", **extra
        )

    return _post


@pytest.fixture()
def charge_event():
    """Builds a gateway ``charge.*`` notification body."""

    def _event(reference, event="charge.success"):
        return {
            "event": event,
            "data": {
                "id": 302961,
                "status": "success" if event == "charge.success" else "failed",
                "reference": reference,
                "amount": 1000,
                "currency": "NGN",
            },
        }

    return _event
