"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderDTO``: checkout request (the cart itself is implicit).
- ``UpdateOrderStatusDTO``: administrative fulfilment transition.
- ``OrderLineOutputDTO`` / ``OrderOutputDTO``: read models.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import OrderStatus

if TYPE_CHECKING:
    from modules.orders.models import Order


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderDTO(BaseModel):
    """Checkout request for the cart of ``owner_id``."""

    model_config = ConfigDict(frozen=True)

    owner_id: int
    idempotency_key: Optional[str] = None

    @field_validator("idempotency_key")
    @classmethod
    def blank_key_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if len(v) > 255:
            raise ValueError("Idempotency key must be at most 255 characters.")
        return v or None


class UpdateOrderStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    new_status: str
    notes: str = ""
    user_id: Optional[int] = None

    @field_validator("new_status")
    @classmethod
    def status_must_exist(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in OrderStatus.values:
            raise ValueError(f"Unknown order status '{v}'.")
        return v


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderLineOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    product_id: UUID
    title: str
    variant_sku: Optional[str]
    quantity: int
    price_at_purchase: Decimal
    subtotal: Decimal


class OrderOutputDTO(BaseModel):
    """Immutable read model of an order, used in receipts and invoices."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    owner_id: int
    status: str
    payment_status: str
    total_amount: Decimal
    payment_ref: Optional[str]
    invoice_url: Optional[str]
    created_at: datetime
    lines: List[OrderLineOutputDTO]

    @classmethod
    def from_entity(cls, order: Order) -> OrderOutputDTO:
        lines = [
            OrderLineOutputDTO(
                id=line.id,
                product_id=line.product_id,
                title=line.title,
                variant_sku=line.variant_sku,
                quantity=line.quantity,
                price_at_purchase=line.price_at_purchase,
                subtotal=line.subtotal,
            )
            for line in order.lines.all()
        ]
        return cls(
            id=order.id,
            order_number=order.order_number,
            owner_id=order.owner_id,
            status=order.status,
            payment_status=order.payment_status,
            total_amount=order.total_amount,
            payment_ref=order.payment_ref,
            invoice_url=order.invoice_url,
            created_at=order.created_at,
            lines=lines,
        )
