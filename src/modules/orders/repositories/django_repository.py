"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Writes that
belong together (order + lines, order + outbox events) run inside
``transaction.atomic()``; when called from a service they join the
service's transaction.

Concurrency control uses ``select_for_update()`` on the order row; the
settlement path locks by ``payment_ref`` so duplicate webhook deliveries
serialize on the same row.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.core.models import OutboxEvent
from modules.orders.models import Order, OrderLine, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _queryset(self):
        return Order.objects.alive().select_related("owner").prefetch_related(
            "lines__product", "status_history"
        )

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(
            owner_id=data["owner_id"],
            idempotency_key=data.get("idempotency_key"),
        )
        order.save()

        total = Decimal("0.00")
        lines = data.get("lines", [])
        for line_data in lines:
            line = OrderLine(
                order=order,
                product_id=line_data["product_id"],
                title=line_data["title"],
                variant_sku=line_data.get("variant_sku"),
                quantity=line_data["quantity"],
                price_at_purchase=line_data["price_at_purchase"],
            )
            line.save()
            total += line.subtotal

        order.total_amount = total
        order.save(update_fields=["total_amount", "updated_at"])

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            line_count=len(lines),
            total_amount=str(total),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return self._queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None):
        queryset = self._queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_for_owner(self, owner_id: int):
        return self._queryset().filter(owner_id=owner_id)

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return (
                Order.objects.alive()
                .select_for_update()
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_payment_ref_for_update(self, payment_ref: str) -> Optional[Order]:
        return (
            Order.objects.alive()
            .select_for_update()
            .filter(payment_ref=payment_ref)
            .first()
        )

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return self._queryset().filter(idempotency_key=key).first()

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order, update_fields: Optional[Sequence[str]] = None) -> Order:
        """Persist the order and write its domain events to the outbox.

        The outbox rows commit or roll back together with the order.  A
        relay run is scheduled for after the commit.
        """
        if update_fields is not None:
            entity.save(update_fields=list(update_fields))
        else:
            entity.save()

        events = entity.domain_events
        for event in events:
            OutboxEvent.objects.create(
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
                payload=_serialize_event_payload(event),
                topic=OUTBOX_TOPIC,
            )
        entity.clear_domain_events()

        if events:
            transaction.on_commit(_schedule_outbox_relay, robust=True)

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # Order-specific writes
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: UUID,
        status: str,
        old_status: Optional[str] = None,
        notes: str = "",
        user_id: Optional[int] = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
            user_id=user_id,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history

    def attach_invoice(self, order_id: UUID, invoice_url: str) -> None:
        Order.objects.filter(id=order_id).update(invoice_url=invoice_url)
        logger.info("order.invoice_attached", order_id=str(order_id))


def _schedule_outbox_relay() -> None:
    from modules.core.tasks import relay_outbox_events

    relay_outbox_events.delay()


def _serialize_event_payload(event: Any) -> Dict[str, Any]:
    data = asdict(event)
    normalized = _normalize_for_json(data)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, list):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
