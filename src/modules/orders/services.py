"""Order service layer (Use Cases).

``CheckoutService`` turns a cart snapshot into a pending order at locked
prices.  It never touches stock counters: the stock check done here is
advisory, and only settlement decrements stock (see
``modules.payments.services.SettlementService``).

``OrderService`` holds the read side and the administrative fulfilment
transitions (``paid -> processing -> shipped -> delivered``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.catalog.exceptions import InsufficientStock, ProductNotFound
from modules.catalog.resolution import resolve_stock_unit
from modules.orders.constants import SETTLEMENT_STATES, OrderStatus
from modules.orders.events import OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    EmptyCart,
    IdempotencyKeyConflict,
    InvalidOrderStatus,
    OrderAccessDenied,
    OrderNotFound,
)

if TYPE_CHECKING:
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.orders.dtos import CreateOrderDTO, UpdateOrderStatusDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class CheckoutService:
    """Application service for checkout.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        cart_repository: ICartRepository,
    ) -> None:
        self._order_repo = order_repository
        self._cart_repo = cart_repository

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create a pending order from the owner's cart.

        Steps:
        1. Replay an earlier order with the same idempotency key.
        2. Reject an empty cart.
        3. For each cart line: resolve the stock unit, check stock
           (advisory) and lock the unit price.
        4. Persist order + lines, history and ``OrderCreated`` atomically.
        5. Clear the cart.

        Raises:
            IdempotencyKeyConflict: key already used by another account.
            EmptyCart: nothing to check out.
            ProductNotFound: a cart line references a missing product.
            VariantNotFound: a cart line's variant does not resolve.
            InsufficientStock: a unit holds fewer units than requested.
        """
        log = logger.bind(owner_id=dto.owner_id)
        log.info("checkout.started")

        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(dto.idempotency_key)
            if existing:
                if existing.owner_id != dto.owner_id:
                    raise IdempotencyKeyConflict(
                        "Idempotency key already used by another account."
                    )
                log.info(
                    "checkout.idempotency_hit",
                    order_id=str(existing.id),
                    key=dto.idempotency_key,
                )
                return existing

        cart = self._cart_repo.list_for_owner(dto.owner_id)
        if not cart:
            raise EmptyCart("Cart is empty.")

        lines: List[Dict[str, Any]] = []
        for item in cart:
            product = item.product
            if not product.is_sellable:
                raise ProductNotFound(f"Product {item.product_id} not found.")

            unit = resolve_stock_unit(product, item.selector)
            if not unit.can_supply(item.quantity):
                log.warning(
                    "checkout.insufficient_stock",
                    product_id=str(product.id),
                    variant_sku=unit.variant_sku,
                    requested=item.quantity,
                    available=unit.stock_quantity,
                )
                raise InsufficientStock(
                    f"Product {product.id}: requested {item.quantity}, "
                    f"available {unit.stock_quantity}."
                )

            lines.append(
                {
                    "product_id": product.id,
                    "title": product.title,
                    "variant_sku": unit.variant_sku,
                    "quantity": item.quantity,
                    "price_at_purchase": unit.price,
                }
            )

        order = self._order_repo.create(
            {
                "owner_id": dto.owner_id,
                "lines": lines,
                "idempotency_key": dto.idempotency_key,
            }
        )
        order.add_domain_event(
            OrderCreated(aggregate_id=order.id, owner_id=dto.owner_id)
        )
        self._order_repo.save(order, update_fields=["updated_at"])
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PENDING,
            notes="Order created",
            user_id=dto.owner_id,
        )

        self._cart_repo.clear(dto.owner_id)

        log.info(
            "checkout.order_created",
            order_id=str(order.id),
            total_amount=str(order.total_amount),
        )
        return self._order_repo.get_by_id(str(order.id)) or order


class OrderService:
    """Read side and administrative transitions of orders."""

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_orders(self, user: Any, filters: Optional[Dict[str, Any]] = None):
        """Staff see every order; everybody else only their own."""
        if user.is_staff:
            return self._order_repo.list(filters)
        queryset = self._order_repo.list_for_owner(user.pk)
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_order(self, user: Any, order_id: str) -> Order:
        """Raises:
        OrderNotFound: the order does not exist.
        OrderAccessDenied: the order belongs to someone else.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        if not user.is_staff and order.owner_id != user.pk:
            raise OrderAccessDenied(f"Order {order_id} belongs to another user.")
        return order

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def update_status(self, dto: UpdateOrderStatusDTO) -> Order:
        """Apply an administrative fulfilment transition.

        ``paid`` and ``failed`` are reachable only through settlement and
        are rejected here even though they appear in the transition table.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: transition is not allowed.
        """
        order = self._order_repo.get_for_update(str(dto.order_id))
        if not order:
            raise OrderNotFound(f"Order {dto.order_id} not found.")

        log = logger.bind(
            order_id=str(dto.order_id),
            current_status=order.status,
            new_status=dto.new_status,
        )

        if dto.new_status in SETTLEMENT_STATES or not order.can_transition_to(
            dto.new_status
        ):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot transition from {order.status} to {dto.new_status}."
            )

        old_status = order.status
        order.status = dto.new_status
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=dto.new_status,
            )
        )
        self._order_repo.save(order, update_fields=["status", "updated_at"])
        self._order_repo.add_history(
            order_id=order.id,
            status=dto.new_status,
            old_status=old_status,
            notes=dto.notes,
            user_id=dto.user_id,
        )

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(dto.order_id))
