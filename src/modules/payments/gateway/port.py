"""Payment gateway port (abstract interface).

Defines the contract every gateway adapter implements, so the payment
services work unchanged against ``PaystackGateway`` (production) and
``FakeGateway`` (development and tests).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class PaymentInitialization:
    """Result of starting a hosted-checkout transaction."""

    authorization_url: str
    reference: str
    access_code: str | None = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def initialize_transaction(
        self,
        *,
        email: str,
        amount_minor: int,
        currency: str,
        reference: str,
        callback_url: str,
        metadata: Dict[str, Any],
    ) -> PaymentInitialization:
        """Register a transaction and return the URL to redirect the payer to.

        Raises:
            PaymentGatewayError: the gateway is unreachable or refused.
        """
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...
