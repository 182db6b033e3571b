"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations.  The
default adapter is the dotted path in ``settings.PAYMENT_GATEWAY_BACKEND``
(``PaystackGateway`` in production, ``FakeGateway`` in tests).
"""

from django.conf import settings
from django.utils.module_loading import import_string

from modules.payments.gateway.port import PaymentGateway, PaymentInitialization

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = import_string(settings.PAYMENT_GATEWAY_BACKEND)()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None


__all__ = [
    "PaymentGateway",
    "PaymentInitialization",
    "get_gateway",
    "reset_gateway",
    "set_gateway",
]
