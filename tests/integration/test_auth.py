"""Integration tests for JWT authentication.

Validates:
  - /health is public (plain Django view, no DRF).
  - Protected DRF endpoints return 401 without or with a bad token.
  - A token obtained from /api/v1/auth/token/ grants access.
  - The payment webhook is the one API endpoint without user auth.
"""

import pytest

pytestmark = pytest.mark.integration


class TestPublicEndpoints:
    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_webhook_needs_no_user_but_a_signature(self, api_client):
        response = api_client.post(
            "/api/v1/payments/webhook/", data={"event": "charge.success"}, format="json"
        )
        assert response.status_code == 401


class TestProtectedEndpoints:
    """All DRF endpoints require a valid JWT by default (Fail Closed)."""

    @pytest.mark.parametrize(
        "path", ["/api/v1/me", "/api/v1/cart/", "/api/v1/orders/"]
    )
    def test_no_token_returns_401(self, api_client, path):
        response = api_client.get(path)
        assert response.status_code == 401

    def test_invalid_token_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer invalid.token.here")
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_malformed_auth_header_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Token some-token")
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_401_includes_www_authenticate_header(self, api_client):
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401
        assert "Bearer" in response.get("WWW-Authenticate", "")


class TestTokenFlow:
    def test_obtained_token_grants_access(self, api_client, user):
        response = api_client.post(
            "/api/v1/auth/token/",
            {"username": "shopper", "password": "shopper-pass-123"},
            format="json",
        )
        assert response.status_code == 200

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.json()['access']}")
        me = api_client.get("/api/v1/me")

        assert me.status_code == 200
        assert me.json() == {
            "id": user.pk,
            "username": "shopper",
            "email": "shopper@example.com",
            "is_staff": False,
        }

    def test_wrong_password_rejected(self, api_client, user):
        response = api_client.post(
            "/api/v1/auth/token/",
            {"username": "shopper", "password": "nope"},
            format="json",
        )
        assert response.status_code == 401
