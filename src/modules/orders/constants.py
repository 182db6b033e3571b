"""Order domain constants.

Two independent status fields are tracked: ``status`` follows the order
through settlement and fulfilment, ``payment_status`` records the outcome
of the payment alone.

``pending -> paid | failed`` is driven only by settlement.  The remaining
edges are administrative fulfilment steps.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    FAILED = "failed", "Failed"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.FAILED},
    OrderStatus.PAID: {OrderStatus.PROCESSING},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.FAILED: set(),
}

# Targets reachable only through a verified payment event.
SETTLEMENT_STATES: set[str] = {OrderStatus.PAID, OrderStatus.FAILED}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.FAILED}

ORDER_NUMBER_MAX_RETRIES = 5
