"""Settlement concurrency integration tests.

Proves that the row lock taken on the order (by payment reference) and
the conditional stock decrements serialize concurrent settlements:

- Duplicate deliveries of one ``charge.success`` settle the order once.
- Orders competing for the last units never oversell.
- Two orders for the last unit of a variant: one settles, one fails.

Uses ``TransactionTestCase`` so each thread sees committed data and
row-level locking behaves realistically.  The tests run on every
backend.  SQLite has no ``SELECT ... FOR UPDATE`` and answers a
conflicting write with "database table is locked"; such an attempt rolls
back and is delivered again, as the gateway does after a 500.  Set
``DATABASE_URL`` to a PostgreSQL database (``pip install .[postgres]``)
to exercise the blocking row locks instead.
"""

from __future__ import annotations

import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db import OperationalError, connections
from django.test import TransactionTestCase

from modules.cart.repositories import CartDjangoRepository
from modules.catalog.models import Product, ProductStatus, ProductVariant
from modules.catalog.repositories import ProductDjangoRepository
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.payments.exceptions import SettlementFailed
from modules.payments.services import SettlementOutcome, SettlementService

logger = logging.getLogger(__name__)

INITIAL_STOCK = 5
NUM_WORKERS = 10
MAX_DELIVERIES = 200


class TestSettlementConcurrency(TransactionTestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(
            "concurrency", email="concurrency@example.com", password="x-pass-123"
        )
        self.product = Product.objects.create(
            title="Gaming Chair",
            price=Decimal("199.99"),
            stock_quantity=INITIAL_STOCK,
            status=ProductStatus.ACTIVE,
        )

    def _order(self, reference: str, quantity: int = 1, variant_sku: str | None = None) -> Order:
        order = OrderDjangoRepository().create(
            {
                "owner_id": self.user.pk,
                "lines": [
                    {
                        "product_id": self.product.id,
                        "title": self.product.title,
                        "variant_sku": variant_sku,
                        "quantity": quantity,
                        "price_at_purchase": self.product.price,
                    }
                ],
            }
        )
        Order.objects.filter(id=order.id).update(payment_ref=reference)
        return order

    def _settle_in_thread(self, reference: str) -> str:
        service = SettlementService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            cart_repository=CartDjangoRepository(),
        )
        try:
            for _ in range(MAX_DELIVERIES):
                try:
                    return service.confirm_payment(reference).value
                except SettlementFailed:
                    logger.warning("Settlement of %s failed (expected)", reference)
                    return "insufficient"
                except OperationalError:
                    time.sleep(random.uniform(0.001, 0.02))
            raise AssertionError(f"{reference} never reached a final outcome")
        finally:
            connections.close_all()

    def _run(self, references: list[str]) -> list[str]:
        with ThreadPoolExecutor(max_workers=NUM_WORKERS) as pool:
            futures = [pool.submit(self._settle_in_thread, ref) for ref in references]
            return [future.result() for future in as_completed(futures)]

    def test_duplicate_deliveries_settle_once(self):
        self._order("ORD_dup_1", quantity=2)

        results = self._run(["ORD_dup_1"] * NUM_WORKERS)

        self.assertEqual(results.count(SettlementOutcome.SETTLED.value), 1)
        self.assertEqual(
            results.count(SettlementOutcome.ALREADY_SETTLED.value), NUM_WORKERS - 1
        )
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, INITIAL_STOCK - 2)

    def test_competing_orders_never_oversell(self):
        references = [f"ORD_race_{i}" for i in range(NUM_WORKERS)]
        for reference in references:
            self._order(reference)

        results = self._run(references)

        self.assertEqual(results.count(SettlementOutcome.SETTLED.value), INITIAL_STOCK)
        self.assertEqual(results.count("insufficient"), NUM_WORKERS - INITIAL_STOCK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 0)
        self.assertEqual(
            Order.objects.filter(status="paid").count(), INITIAL_STOCK
        )

    def test_last_unit_of_a_variant_goes_to_one_order(self):
        ProductVariant.objects.create(
            product=self.product, sku="CHAIR-RED", price=Decimal("209.99"), stock_quantity=1
        )
        for reference in ("ORD_red_a", "ORD_red_b"):
            self._order(reference, variant_sku="CHAIR-RED")

        results = self._run(["ORD_red_a", "ORD_red_b"])

        self.assertCountEqual(results, [SettlementOutcome.SETTLED.value, "insufficient"])
        self.assertEqual(ProductVariant.objects.get(sku="CHAIR-RED").stock_quantity, 0)
        self.assertEqual(Order.objects.filter(status="pending").count(), 1)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, INITIAL_STOCK)
