"""Configurable fake payment gateway for development and testing.

Makes no external calls.  It can be configured at runtime to succeed or
fail, and records every call so tests can assert on what was sent.
Webhook signatures use the same HMAC scheme as the real gateway, so
signed test payloads exercise the production verification path.
"""

from __future__ import annotations

from typing import Any, Dict
from uuid import uuid4

from django.conf import settings

from modules.payments.exceptions import PaymentGatewayError
from modules.payments.gateway.port import PaymentGateway, PaymentInitialization
from modules.payments.signatures import verify_signature


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, secret_key: str | None = None) -> None:
        self.secret_key = secret_key if secret_key is not None else settings.PAYSTACK_SECRET_KEY
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(
        self, should_succeed: bool, failure_reason: str = "Gateway unavailable"
    ) -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

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
        self.calls.append(
            {
                "method": "initialize_transaction",
                "email": email,
                "amount_minor": amount_minor,
                "currency": currency,
                "reference": reference,
                "callback_url": callback_url,
                "metadata": metadata,
            }
        )
        if not self.should_succeed:
            raise PaymentGatewayError(self.failure_reason)

        access_code = f"fake_{uuid4().hex[:12]}"
        return PaymentInitialization(
            authorization_url=f"https://checkout.example.test/{access_code}",
            reference=reference,
            access_code=access_code,
        )

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        return verify_signature(payload, signature, self.secret_key)
