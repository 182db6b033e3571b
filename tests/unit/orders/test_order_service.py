"""Unit tests for OrderService: scoped reads and fulfilment transitions."""

from __future__ import annotations

from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.constants import OrderStatus
from modules.orders.dtos import UpdateOrderStatusDTO
from modules.orders.exceptions import InvalidOrderStatus, OrderAccessDenied, OrderNotFound
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return OrderService(order_repository=OrderDjangoRepository())


@pytest.fixture()
def order(user, make_order, make_product):
    return make_order(user, [(make_product(), 1, None, "10.00")])


class TestQueries:
    def test_owner_sees_only_own_orders(self, service, user, other_user, order, make_order, make_product):
        make_order(other_user, [(make_product(title="Other"), 1, None, "5.00")])

        assert [o.id for o in service.list_orders(user)] == [order.id]

    def test_staff_sees_everything(self, service, staff_user, other_user, order, make_order, make_product):
        make_order(other_user, [(make_product(title="Other"), 1, None, "5.00")])

        assert len(list(service.list_orders(staff_user))) == 2

    def test_get_order_of_another_user_denied(self, service, other_user, order):
        with pytest.raises(OrderAccessDenied):
            service.get_order(other_user, str(order.id))

    def test_get_missing_order(self, service, user):
        with pytest.raises(OrderNotFound):
            service.get_order(user, str(uuid4()))


class TestUpdateStatus:
    def _paid(self, order):
        Order.objects.filter(id=order.id).update(status=OrderStatus.PAID, payment_status="paid")

    def test_fulfilment_transition(self, service, staff_user, order):
        self._paid(order)

        updated = service.update_status(
            UpdateOrderStatusDTO(
                order_id=order.id, new_status="processing", notes="Picking", user_id=staff_user.pk
            )
        )

        assert updated.status == OrderStatus.PROCESSING
        latest = updated.status_history.first()
        assert latest.old_status == OrderStatus.PAID
        assert latest.new_status == OrderStatus.PROCESSING
        assert latest.user_id == staff_user.pk

    def test_skipping_a_step_rejected(self, service, order):
        self._paid(order)

        with pytest.raises(InvalidOrderStatus):
            service.update_status(UpdateOrderStatusDTO(order_id=order.id, new_status="shipped"))

    @pytest.mark.parametrize("target", ["paid", "failed"])
    def test_settlement_states_unreachable_by_hand(self, service, order, target):
        with pytest.raises(InvalidOrderStatus):
            service.update_status(UpdateOrderStatusDTO(order_id=order.id, new_status=target))

        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_missing_order(self, service):
        with pytest.raises(OrderNotFound):
            service.update_status(UpdateOrderStatusDTO(order_id=uuid4(), new_status="shipped"))

    def test_unknown_status_rejected_by_dto(self):
        with pytest.raises(ValidationError):
            UpdateOrderStatusDTO(order_id=uuid4(), new_status="teleported")
