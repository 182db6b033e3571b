"""Event handlers reacting to settlement outcomes.

They run inside the outbox relay, after the settlement transaction has
committed, and only enqueue work.
"""

from __future__ import annotations

import structlog

from modules.orders.events import OrderPaid, OrderPaymentFailed
from modules.payments.tasks import generate_invoice, send_payment_receipt
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderPaidHandler(IEventHandler[OrderPaid]):
    def handle(self, event: OrderPaid) -> None:
        order_id = str(event.aggregate_id)
        logger.info("order.paid", order_id=order_id, reference=event.payment_ref)
        generate_invoice.delay(order_id)
        send_payment_receipt.delay(order_id)


class OrderPaymentFailedHandler(IEventHandler[OrderPaymentFailed]):
    def handle(self, event: OrderPaymentFailed) -> None:
        logger.info(
            "order.payment_failed",
            order_id=str(event.aggregate_id),
            reference=event.payment_ref,
        )


order_paid_handler = OrderPaidHandler()
order_payment_failed_handler = OrderPaymentFailedHandler()
