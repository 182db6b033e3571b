"""Webhook signature helpers.

The gateway signs the raw request body with HMAC-SHA512 keyed by the
account secret and sends the hex digest in ``X-Paystack-Signature``.
"""

from __future__ import annotations

import hashlib
import hmac

SIGNATURE_HEADER = "X-Paystack-Signature"


def compute_signature(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


def verify_signature(payload: bytes, signature: str | None, secret: str) -> bool:
    """Constant-time comparison; a missing signature or secret never verifies."""
    if not signature or not secret:
        return False
    expected = compute_signature(payload, secret)
    return hmac.compare_digest(expected, signature.strip().lower())
