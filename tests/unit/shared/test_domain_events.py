"""Unit tests for domain events, their registry and the in-memory bus."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.events import OrderCreated, OrderPaid
from modules.orders.models import Order
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


def test_order_registers_and_clears_domain_events():
    order = Order(owner_id=1, order_number="ORD-TEST-000001", total_amount=Decimal("0.00"))

    assert order.domain_events == []

    event = OrderCreated(aggregate_id=order.id, owner_id=1)
    order.add_domain_event(event)

    assert order.domain_events == [event]
    assert event.event_name == "OrderCreated"

    order.clear_domain_events()
    assert order.domain_events == []


def test_events_are_registered_by_class_name():
    assert DomainEvent.registry["OrderPaid"] is OrderPaid


def test_from_payload_rebuilds_typed_event():
    original = OrderPaid(aggregate_id=uuid4(), owner_id=3, payment_ref="ORD_x_1")
    payload = {
        "aggregate_id": str(original.aggregate_id),
        "event_id": str(original.event_id),
        "occurred_on": original.occurred_on.isoformat(),
        "event_name": "OrderPaid",
        "owner_id": 3,
        "payment_ref": "ORD_x_1",
    }

    rebuilt = DomainEvent.from_payload("OrderPaid", payload)

    assert rebuilt == original


def test_from_payload_unknown_event_raises():
    with pytest.raises(KeyError):
        DomainEvent.from_payload("NotAnEvent", {"aggregate_id": str(uuid4())})


class _Recorder:
    def __init__(self):
        self.seen = []

    def handle(self, event):
        self.seen.append(event)


def test_bus_dispatches_by_exact_type():
    bus = InMemoryEventBus()
    paid_handler = _Recorder()
    created_handler = _Recorder()
    bus.subscribe(OrderPaid, paid_handler)
    bus.subscribe(OrderCreated, created_handler)

    event = OrderPaid(aggregate_id=uuid4(), owner_id=1, payment_ref="r")
    bus.publish(event)

    assert paid_handler.seen == [event]
    assert created_handler.seen == []


def test_bus_subscribe_is_idempotent():
    bus = InMemoryEventBus()
    handler = _Recorder()
    bus.subscribe(OrderPaid, handler)
    bus.subscribe(OrderPaid, handler)

    bus.publish(OrderPaid(aggregate_id=uuid4()))

    assert len(handler.seen) == 1
