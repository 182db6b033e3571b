"""Post-settlement Celery tasks.

Both tasks are best-effort: they log failures and return a falsy value,
they never raise back into the outbox relay and never touch payment
state.  Running either twice for the same order is harmless.
"""

from __future__ import annotations

import structlog
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

from modules.orders.dtos import OrderOutputDTO
from modules.orders.repositories import OrderDjangoRepository
from modules.payments.invoices import InvoiceEmitter

logger = structlog.get_logger(__name__)

RECEIPT_TEMPLATE = "payments/receipt_email.txt"


@shared_task(name="payments.generate_invoice")
def generate_invoice(order_id: str) -> str | None:
    repository = OrderDjangoRepository()
    order = repository.get_by_id(order_id)
    if order is None:
        logger.warning("invoice.order_missing", order_id=order_id)
        return None
    return InvoiceEmitter(order_repository=repository).try_issue(order)


@shared_task(name="payments.send_payment_receipt")
def send_payment_receipt(order_id: str) -> bool:
    log = logger.bind(order_id=order_id)

    order = OrderDjangoRepository().get_by_id(order_id)
    if order is None:
        log.warning("receipt.order_missing")
        return False
    recipient = (order.owner.email or "").strip()
    if not recipient:
        log.warning("receipt.no_recipient")
        return False

    body = render_to_string(
        RECEIPT_TEMPLATE,
        {
            "order": OrderOutputDTO.from_entity(order),
            "owner": order.owner,
            "currency": settings.CURRENCY,
        },
    )
    try:
        send_mail(
            subject=f"Payment received for order {order.order_number}",
            message=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient],
        )
    except Exception:
        log.exception("receipt.send_failed")
        return False

    log.info("receipt.sent")
    return True
