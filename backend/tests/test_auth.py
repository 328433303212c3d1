"""Test authentication utilities and dependencies."""

from datetime import timedelta

import pytest
from fastapi import HTTPException

from app.auth import AUTH_COOKIE_NAME, AuthContext, create_access_token, decode_token
from app.config import get_settings
from app.rate_limit import is_trusted_proxy, parse_cidrs


class TestAuthUtilities:
    """Test token helpers."""

    def test_create_and_decode_token(self):
        settings = get_settings()

        token = create_access_token("user-1", settings, role="provider", name="Juan")
        payload = decode_token(token, settings)

        assert payload["sub"] == "user-1"
        assert payload["role"] == "provider"
        assert payload["name"] == "Juan"
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_expired_token_rejected(self):
        settings = get_settings()
        token = create_access_token("user-1", settings, expires_delta=timedelta(seconds=-5))

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token, settings)
        assert exc_info.value.status_code == 401

    def test_auth_context_actor(self):
        ctx = AuthContext(user_id="admin-1", role="admin", name="Site Admin")

        assert ctx.is_admin is True
        assert ctx.actor.id == "admin-1"
        assert ctx.actor.name == "Site Admin"


class TestAuthDependencies:
    """Token handling on real routes."""

    def test_missing_token_401(self, client):
        response = client.get("/jobs/mine")
        assert response.status_code == 401

    def test_garbage_token_401(self, client):
        response = client.get("/jobs/mine", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    def test_unknown_role_401(self, client):
        token = create_access_token("user-1", get_settings(), role="superuser")
        response = client.get("/jobs/mine", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_cookie_fallback(self, client):
        token = create_access_token("client-1", get_settings(), role="client")
        response = client.get("/jobs/mine", headers={"Cookie": f"{AUTH_COOKIE_NAME}={token}"})

        assert response.status_code == 200

    def test_admin_route_requires_admin(self, client, client_headers):
        response = client.delete("/admin/jobs/job-1", headers=client_headers)
        assert response.status_code == 403


class TestTrustedProxies:
    def test_parse_cidrs_defaults_and_skips_invalid(self):
        assert len(parse_cidrs("")) == 5
        assert [str(n) for n in parse_cidrs("10.1.0.0/16, bogus")] == ["10.1.0.0/16"]

    def test_is_trusted_proxy(self):
        networks = tuple(parse_cidrs("10.0.0.0/8"))
        assert is_trusted_proxy("10.2.3.4", networks)
        assert not is_trusted_proxy("8.8.8.8", networks)
        assert not is_trusted_proxy("not-an-ip", networks)
