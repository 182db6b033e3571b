"""Unit tests for the post-settlement Celery tasks."""

from __future__ import annotations

from unittest.mock import patch
from uuid import uuid4

import pytest

from modules.orders.models import Order
from modules.payments.tasks import generate_invoice, send_payment_receipt

pytestmark = pytest.mark.unit


@pytest.fixture()
def paid_order(user, make_order, make_product):
    order = make_order(user, [(make_product(title="Mug"), 1, None, "7.00")], payment_ref="ORD_t_1")
    Order.objects.filter(id=order.id).update(status="paid", payment_status="paid")
    return order


def test_generate_invoice_attaches_url(paid_order):
    url = generate_invoice(str(paid_order.id))

    assert url
    assert Order.objects.get(id=paid_order.id).invoice_url == url


def test_generate_invoice_for_missing_order():
    assert generate_invoice(str(uuid4())) is None


def test_receipt_is_mailed_to_owner(paid_order, mailoutbox):
    assert send_payment_receipt(str(paid_order.id)) is True

    assert len(mailoutbox) == 1
    message = mailoutbox[0]
    assert message.to == ["shopper@example.com"]
    assert paid_order.order_number in message.subject
    assert "Mug" in message.body
    assert "ORD_t_1" in message.body


def test_receipt_skipped_without_email(user, paid_order, mailoutbox):
    user.email = ""
    user.save(update_fields=["email"])

    assert send_payment_receipt(str(paid_order.id)) is False
    assert mailoutbox == []


def test_receipt_for_missing_order(mailoutbox):
    assert send_payment_receipt(str(uuid4())) is False


def test_mail_failure_is_reported_not_raised(paid_order):
    with patch("modules.payments.tasks.send_mail", side_effect=ConnectionRefusedError):
        assert send_payment_receipt(str(paid_order.id)) is False
