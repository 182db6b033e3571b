import pytest

pytestmark = pytest.mark.unit


class TestSensitiveDataMasking:
    def test_paystack_secret_key_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "error": "401 for key sk_test_abc123DEF"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "sk_test_abc123DEF" not in result["error"]
        assert "***MASKED***" in result["error"]

    def test_password_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert "***MASKED***" in result["header"]

    def test_authorization_header_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "headers": "Authorization: Bearer.eyJhbGciOi"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "eyJhbGciOi" not in result["headers"]

    def test_signature_key_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "payment.webhook_rejected", "signature": "a1b2c3"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["signature"] == "***MASKED***"

    def test_non_sensitive_data_unchanged(self):
        from config.settings import mask_sensitive_data

        event_dict = {
            "event": "settlement.settled",
            "reference": "ORD_0190_1700000000000",
            "has_signature": True,
        }
        result = mask_sensitive_data(None, None, event_dict)
        assert result["reference"] == "ORD_0190_1700000000000"
        assert result["event"] == "settlement.settled"
        assert result["has_signature"] is True
