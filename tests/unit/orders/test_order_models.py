"""Unit tests for Order and OrderLine model rules."""

from __future__ import annotations

import re
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import OrderOutputDTO
from modules.orders.models import Order

pytestmark = pytest.mark.unit


def test_order_number_format(user, make_order, make_product):
    order = make_order(user, [(make_product(), 1, None, "10.00")])

    assert re.fullmatch(r"ORD-\d{8}-[0-9A-F]{6}", order.order_number)


def test_total_and_subtotals_from_locked_prices(user, make_order, make_product):
    order = make_order(
        user,
        [(make_product(title="A"), 3, None, "2.50"), (make_product(title="B"), 1, None, "4.00")],
    )

    assert order.total_amount == Decimal("11.50")
    assert sorted(line.subtotal for line in order.lines.all()) == [Decimal("4.00"), Decimal("7.50")]


def test_order_lines_are_immutable(user, make_order, make_product):
    order = make_order(user, [(make_product(), 1, None, "10.00")])
    line = order.lines.get()

    line.price_at_purchase = Decimal("1.00")
    with pytest.raises(ValidationError):
        line.save()


def test_payment_ref_is_unique(user, make_order, make_product):
    product = make_product()
    make_order(user, [(product, 1, None, "10.00")], payment_ref="ORD_dup_1")

    with pytest.raises(IntegrityError):
        make_order(user, [(product, 1, None, "10.00")], payment_ref="ORD_dup_1")


def test_settlement_helpers():
    order = Order(owner_id=1)

    assert not order.is_settled
    assert order.can_transition_to(OrderStatus.PAID)
    assert not order.can_transition_to(OrderStatus.SHIPPED)

    order.mark_paid()
    assert order.is_settled
    assert order.payment_status == PaymentStatus.PAID
    assert order.can_transition_to(OrderStatus.PROCESSING)

    failed = Order(owner_id=1)
    failed.mark_payment_failed()
    assert failed.status == OrderStatus.FAILED
    assert failed.is_terminal
    assert not failed.is_settled


def test_output_dto_from_entity(user, make_order, make_product):
    order = make_order(user, [(make_product(title="Mug"), 2, None, "3.00")])

    dto = OrderOutputDTO.from_entity(order)

    assert dto.order_number == order.order_number
    assert dto.total_amount == Decimal("6.00")
    assert [(line.title, line.quantity) for line in dto.lines] == [("Mug", 2)]
