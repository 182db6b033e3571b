"""Payment service layer (Use Cases).

``PaymentService`` starts a hosted-checkout transaction for a pending
order.  ``SettlementService`` applies verified gateway events to orders.

Settlement guarantees, for one ``payment_ref``:

- the order row is locked (``SELECT ... FOR UPDATE``) before it is read,
  so duplicate deliveries serialize and the loser sees ``paid``;
- every line's stock is decremented with a conditional ``UPDATE`` inside
  the same transaction that marks the order paid, so either all lines
  and the status change commit, or none do;
- lines are decremented in ``(product_id, variant_sku)`` order, so two
  settlements touching the same counters lock them in the same order.
"""

from __future__ import annotations

import enum
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, List

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.catalog.exceptions import CatalogError, InsufficientStock, ProductNotFound
from modules.catalog.resolution import resolve_stock_unit
from modules.orders.constants import OrderStatus
from modules.orders.events import OrderPaid, OrderPaymentFailed
from modules.orders.exceptions import OrderAccessDenied, OrderNotFound
from modules.payments.dtos import CHARGE_FAILED, CHARGE_SUCCESS, PaymentInitiationOutputDTO
from modules.payments.exceptions import (
    MissingCustomerEmail,
    OrderAlreadyProcessed,
    SettlementFailed,
)

if TYPE_CHECKING:
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.catalog.repositories.interfaces import IProductRepository
    from modules.orders.models import Order, OrderLine
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.dtos import GatewayEventDTO, InitiatePaymentDTO
    from modules.payments.gateway.port import PaymentGateway

logger = structlog.get_logger(__name__)


class SettlementOutcome(str, enum.Enum):
    SETTLED = "settled"
    ALREADY_SETTLED = "already_settled"
    FAILED = "failed"
    IGNORED = "ignored"


def to_minor_units(amount: Decimal) -> int:
    """``Decimal("49.99")`` -> ``4999``."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_payment_reference(order: Order) -> str:
    epoch_ms = int(timezone.now().timestamp() * 1000)
    return f"ORD_{order.id}_{epoch_ms}"


# ---------------------------------------------------------------------------
# Payment initiation
# ---------------------------------------------------------------------------


class PaymentService:
    """Starts payment for an order at the configured gateway."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        gateway: PaymentGateway,
    ) -> None:
        self._order_repo = order_repository
        self._gateway = gateway

    def initiate_payment(self, dto: InitiatePaymentDTO) -> PaymentInitiationOutputDTO:
        """Register a transaction at the gateway and persist its reference.

        The gateway call runs outside any database lock.  The order is
        then locked and re-checked before ``payment_ref`` is written.

        Raises:
            OrderNotFound: the order does not exist.
            OrderAccessDenied: the order belongs to another user.
            OrderAlreadyProcessed: the order is no longer pending.
            MissingCustomerEmail: the owner has no email address.
            PaymentGatewayError: the gateway call failed.
        """
        log = logger.bind(order_id=str(dto.order_id), owner_id=dto.owner_id)

        order = self._order_repo.get_by_id(str(dto.order_id))
        if not order:
            raise OrderNotFound(f"Order {dto.order_id} not found.")
        if order.owner_id != dto.owner_id:
            log.warning("payment.access_denied")
            raise OrderAccessDenied(f"Order {dto.order_id} belongs to another user.")
        if order.status != OrderStatus.PENDING:
            raise OrderAlreadyProcessed(f"Order {order.order_number} already processed.")

        email = (order.owner.email or "").strip()
        if not email:
            raise MissingCustomerEmail("Order owner has no email address.")

        reference = build_payment_reference(order)
        initialization = self._gateway.initialize_transaction(
            email=email,
            amount_minor=to_minor_units(order.total_amount),
            currency=settings.CURRENCY,
            reference=reference,
            callback_url=f"{settings.CLIENT_URL.rstrip('/')}/payment/success",
            metadata={"order_id": str(order.id)},
        )

        self._attach_reference(order.id, initialization.reference)
        log.info("payment.initialized", reference=initialization.reference)

        return PaymentInitiationOutputDTO(
            authorization_url=initialization.authorization_url,
            reference=initialization.reference,
        )

    @transaction.atomic
    def _attach_reference(self, order_id, reference: str) -> None:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        if order.status != OrderStatus.PENDING:
            raise OrderAlreadyProcessed(f"Order {order.order_number} already processed.")
        order.payment_ref = reference
        self._order_repo.save(order, update_fields=["payment_ref", "updated_at"])


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------


class SettlementService:
    """Applies verified gateway events to orders."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        cart_repository: ICartRepository,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._cart_repo = cart_repository

    def process_event(self, event: GatewayEventDTO) -> SettlementOutcome:
        """Dispatch a verified gateway event.

        Events other than ``charge.success`` / ``charge.failed`` and events
        without a reference are acknowledged without touching any state.
        """
        if not event.reference:
            logger.info("settlement.event_without_reference", gateway_event=event.event)
            return SettlementOutcome.IGNORED
        if event.event == CHARGE_SUCCESS:
            return self.confirm_payment(event.reference)
        if event.event == CHARGE_FAILED:
            return self.fail_payment(event.reference)

        logger.info(
            "settlement.event_ignored",
            gateway_event=event.event,
            reference=event.reference,
        )
        return SettlementOutcome.IGNORED

    @transaction.atomic
    def confirm_payment(self, reference: str) -> SettlementOutcome:
        """Settle the order identified by ``reference``.

        Raises:
            SettlementFailed: a line could not be decremented; the whole
                transaction (earlier decrements included) is rolled back
                and the order stays pending.
        """
        log = logger.bind(reference=reference)

        order = self._order_repo.get_by_payment_ref_for_update(reference)
        if order is None:
            log.warning("settlement.unknown_reference")
            return SettlementOutcome.IGNORED

        log = log.bind(order_id=str(order.id))
        if order.is_settled:
            log.info("settlement.already_settled")
            return SettlementOutcome.ALREADY_SETTLED
        if order.status != OrderStatus.PENDING:
            log.info("settlement.order_not_pending", status=order.status)
            return SettlementOutcome.IGNORED

        try:
            self._decrement_lines(order)
        except CatalogError as exc:
            log.warning(
                "settlement.insufficient_stock",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise SettlementFailed(
                f"Order {order.order_number} could not be settled: {exc}",
                order_id=order.id,
                payment_ref=reference,
            ) from exc

        order.mark_paid()
        order.add_domain_event(
            OrderPaid(
                aggregate_id=order.id,
                owner_id=order.owner_id,
                payment_ref=reference,
            )
        )
        self._order_repo.save(
            order, update_fields=["status", "payment_status", "updated_at"]
        )
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PAID,
            old_status=OrderStatus.PENDING,
            notes="Payment confirmed",
        )
        self._cart_repo.clear(order.owner_id)

        log.info("settlement.settled", total_amount=str(order.total_amount))
        return SettlementOutcome.SETTLED

    @transaction.atomic
    def fail_payment(self, reference: str) -> SettlementOutcome:
        """Record a failed charge.  Stock is never touched."""
        log = logger.bind(reference=reference)

        order = self._order_repo.get_by_payment_ref_for_update(reference)
        if order is None:
            log.warning("settlement.unknown_reference")
            return SettlementOutcome.IGNORED
        if order.is_settled:
            log.info("settlement.already_settled", order_id=str(order.id))
            return SettlementOutcome.ALREADY_SETTLED
        if order.status != OrderStatus.PENDING:
            return SettlementOutcome.IGNORED

        order.mark_payment_failed()
        order.add_domain_event(
            OrderPaymentFailed(
                aggregate_id=order.id,
                owner_id=order.owner_id,
                payment_ref=reference,
            )
        )
        self._order_repo.save(
            order, update_fields=["status", "payment_status", "updated_at"]
        )
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.FAILED,
            old_status=OrderStatus.PENDING,
            notes="Payment failed",
        )

        log.info("settlement.payment_failed", order_id=str(order.id))
        return SettlementOutcome.FAILED

    def _decrement_lines(self, order: Order) -> None:
        lines: List[OrderLine] = sorted(
            order.lines.all(),
            key=lambda line: (str(line.product_id), line.variant_sku or ""),
        )
        products = self._product_repo.get_many(line.product_id for line in lines)

        for line in lines:
            product = products.get(line.product_id)
            if product is None:
                raise ProductNotFound(f"Product {line.product_id} not found.")

            unit = resolve_stock_unit(product, line.selector)
            if not self._product_repo.decrement_stock(
                product.id, unit.selector, line.quantity
            ):
                raise InsufficientStock(
                    f"Product {product.id} ({unit.variant_sku or 'no variant'}): "
                    f"requested {line.quantity}, not enough stock."
                )
