"""Payment domain exceptions.

Initiation errors are translated to 4xx/5xx responses by the views.
``SettlementError`` and its subclasses escape ``confirm_payment`` after
the settlement transaction rolled back; the webhook answers 500 so the
provider redelivers the event.
"""

from __future__ import annotations


class PaymentError(Exception):
    """Base class for payment initiation errors."""


class OrderAlreadyProcessed(PaymentError):
    """Payment was requested for an order that is no longer pending."""


class MissingCustomerEmail(PaymentError):
    """The order owner has no email address to hand to the gateway."""


class PaymentGatewayError(PaymentError):
    """The gateway could not be reached or rejected the request."""


class SettlementError(Exception):
    """A verified payment event could not be applied."""


class SettlementFailed(SettlementError):
    """Stock could not be decremented for one of the order's lines.

    The underlying catalog error is chained as ``__cause__``.
    """

    def __init__(self, message: str, *, order_id=None, payment_ref: str = "") -> None:
        super().__init__(message)
        self.order_id = order_id
        self.payment_ref = payment_ref
