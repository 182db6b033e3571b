"""Unit tests for webhook signature verification."""

from __future__ import annotations

import hashlib
import hmac

import pytest

from modules.payments.signatures import compute_signature, verify_signature

pytestmark = pytest.mark.unit

SECRET = "sk_test_abc"
BODY = b'{"event":"charge.success","data":{"reference":"ORD_1"}}'


def test_signature_is_hmac_sha512_hex():
    expected = hmac.new(SECRET.encode(), BODY, hashlib.sha512).hexdigest()

    assert compute_signature(BODY, SECRET) == expected
    assert len(expected) == 128


def test_valid_signature_verifies():
    assert verify_signature(BODY, compute_signature(BODY, SECRET), SECRET)


def test_uppercase_hex_verifies():
    assert verify_signature(BODY, compute_signature(BODY, SECRET).upper(), SECRET)


def test_tampered_body_fails():
    signature = compute_signature(BODY, SECRET)

    assert not verify_signature(BODY + b" ", signature, SECRET)


def test_other_secret_fails():
    assert not verify_signature(BODY, compute_signature(BODY, "sk_test_other"), SECRET)


@pytest.mark.parametrize("signature", [None, ""])
def test_missing_signature_fails(signature):
    assert not verify_signature(BODY, signature, SECRET)


def test_empty_secret_never_verifies():
    assert not verify_signature(BODY, compute_signature(BODY, ""), "")
