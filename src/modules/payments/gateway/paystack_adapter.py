"""Paystack payment gateway adapter.

Talks to the Paystack REST API with ``requests``.  Only hosted checkout
(``/transaction/initialize``) is used; settlement is driven by the
signed ``charge.*`` webhooks, never by polling.
"""

from __future__ import annotations

from typing import Any, Dict

import requests
import structlog
from django.conf import settings

from modules.payments.exceptions import PaymentGatewayError
from modules.payments.gateway.port import PaymentGateway, PaymentInitialization
from modules.payments.signatures import verify_signature

logger = structlog.get_logger(__name__)


class PaystackGateway(PaymentGateway):
    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.secret_key = secret_key if secret_key is not None else settings.PAYSTACK_SECRET_KEY
        self.base_url = (base_url or settings.PAYSTACK_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.PAYSTACK_TIMEOUT

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

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
        payload = {
            "email": email,
            "amount": amount_minor,
            "currency": currency,
            "reference": reference,
            "callback_url": callback_url,
            "metadata": metadata,
        }
        log = logger.bind(reference=reference, amount_minor=amount_minor)

        try:
            response = requests.post(
                f"{self.base_url}/transaction/initialize",
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as exc:
            log.error("paystack.initialize_failed", error=str(exc))
            raise PaymentGatewayError("Payment initialization failed.") from exc
        except ValueError as exc:
            log.error("paystack.invalid_response", error=str(exc))
            raise PaymentGatewayError("Payment gateway returned invalid JSON.") from exc

        data = body.get("data") or {}
        if not body.get("status") or not data.get("authorization_url"):
            log.error("paystack.initialize_rejected", message=body.get("message"))
            raise PaymentGatewayError(
                body.get("message") or "Payment initialization was rejected."
            )

        log.info("paystack.initialized")
        return PaymentInitialization(
            authorization_url=data["authorization_url"],
            reference=data.get("reference") or reference,
            access_code=data.get("access_code"),
            raw=body,
        )

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        return verify_signature(payload, signature, self.secret_key)
