"""Unit tests for the Paystack adapter (HTTP calls mocked)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from modules.payments.exceptions import PaymentGatewayError
from modules.payments.gateway.paystack_adapter import PaystackGateway
from modules.payments.signatures import compute_signature

pytestmark = pytest.mark.unit

POST = "modules.payments.gateway.paystack_adapter.requests.post"


@pytest.fixture()
def gateway():
    return PaystackGateway(
        secret_key="sk_test_123", base_url="https://paystack.test/", timeout=3
    )


def _response(body, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return response


def _initialize(gateway):
    return gateway.initialize_transaction(
        email="shopper@example.com",
        amount_minor=4999,
        currency="NGN",
        reference="ORD_abc_1",
        callback_url="http://shop.test/payment/success",
        metadata={"order_id": "abc"},
    )


def test_initialize_posts_expected_request(gateway):
    body = {
        "status": True,
        "message": "Authorization URL created",
        "data": {
            "authorization_url": "https://checkout.paystack.com/xyz",
            "access_code": "xyz",
            "reference": "ORD_abc_1",
        },
    }
    with patch(POST, return_value=_response(body)) as post:
        result = _initialize(gateway)

    assert result.authorization_url == "https://checkout.paystack.com/xyz"
    assert result.reference == "ORD_abc_1"
    assert result.access_code == "xyz"

    args, kwargs = post.call_args
    assert args[0] == "https://paystack.test/transaction/initialize"
    assert kwargs["headers"]["Authorization"] == "Bearer sk_test_123"
    assert kwargs["timeout"] == 3
    assert kwargs["json"]["amount"] == 4999
    assert kwargs["json"]["metadata"] == {"order_id": "abc"}


def test_rejected_initialization_raises_with_gateway_message(gateway):
    body = {"status": False, "message": "Duplicate Transaction Reference"}
    with patch(POST, return_value=_response(body)):
        with pytest.raises(PaymentGatewayError, match="Duplicate Transaction Reference"):
            _initialize(gateway)


def test_http_error_raises(gateway):
    with patch(POST, return_value=_response({}, status_code=500)):
        with pytest.raises(PaymentGatewayError):
            _initialize(gateway)


def test_network_error_raises(gateway):
    with patch(POST, side_effect=requests.ConnectionError("down")):
        with pytest.raises(PaymentGatewayError):
            _initialize(gateway)


def test_invalid_json_raises(gateway):
    response = _response(None)
    response.json.side_effect = ValueError("no json")
    with patch(POST, return_value=response):
        with pytest.raises(PaymentGatewayError):
            _initialize(gateway)


def test_verifies_signatures_with_secret_key(gateway):
    body = b'{"event":"charge.success"}'

    assert gateway.verify_webhook_signature(body, compute_signature(body, "sk_test_123"))
    assert not gateway.verify_webhook_signature(body, compute_signature(body, "other"))
