"""Order repository interface.

Extends ``IRepository[Order]`` with what checkout, payment initiation and
settlement need: atomic creation with lines, row-locked reads (by id and
by payment reference), status history and idempotency-key look-up.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Sequence
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes OrderLine children and OrderStatusHistory
    records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its lines atomically.

        ``data`` must include ``owner_id`` and ``lines`` (dicts with
        ``product_id``, ``title``, ``variant_sku``, ``quantity``,
        ``price_at_purchase``); ``idempotency_key`` is optional.
        """

    @abstractmethod
    def save(self, entity: Order, update_fields: Optional[Sequence[str]] = None) -> Order:
        """Persist the order and write its pending domain events to the outbox."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order holding a row-level lock until commit."""

    @abstractmethod
    def get_by_payment_ref_for_update(self, payment_ref: str) -> Optional[Order]:
        """Retrieve the order correlated to ``payment_ref`` with a row lock."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""

    @abstractmethod
    def list_for_owner(self, owner_id: int) -> Iterable[Order]:
        """Orders placed by ``owner_id``, newest first."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        old_status: Optional[str] = None,
        notes: str = "",
        user_id: Optional[int] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def attach_invoice(self, order_id: UUID, invoice_url: str) -> None:
        """Store the invoice location without touching any other column."""
