"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when checkout turns a cart into a pending order."""

    owner_id: int | None = None


@dataclass(frozen=True)
class OrderPaid(DomainEvent):
    """Raised in the settlement transaction that marks an order paid."""

    owner_id: int | None = None
    payment_ref: str = ""


@dataclass(frozen=True)
class OrderPaymentFailed(DomainEvent):
    """Raised when the gateway reports a failed charge for a pending order."""

    owner_id: int | None = None
    payment_ref: str = ""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised on administrative fulfilment transitions."""

    old_status: str = ""
    new_status: str = ""
