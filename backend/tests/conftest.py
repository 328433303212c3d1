"""Pytest configuration and fixtures."""

import os
import secrets

import pytest

# Generate a unique test secret for this test run to prevent token forgery
_TEST_JWT_SECRET = f"test-only-{secrets.token_urlsafe(32)}"

os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET_KEY", _TEST_JWT_SECRET)

from app.database import get_storage  # noqa: E402
from app.main import app  # noqa: E402
from app.rate_limit import limiter  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from localpro.storage import InMemoryStorage  # noqa: E402


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def client(storage):
    """Test client wired to a fresh in-memory store."""
    app.dependency_overrides[get_storage] = lambda: storage
    limiter.enabled = False
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        limiter.enabled = True


def _headers(user_id: str, role: str, name: str | None = None) -> dict:
    from app.auth import create_access_token
    from app.config import get_settings

    token = create_access_token(user_id, get_settings(), role=role, name=name)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client_headers():
    return _headers("client-1", "client", "Maria Santos")


@pytest.fixture
def other_client_headers():
    return _headers("client-2", "client", "Other Client")


@pytest.fixture
def provider_headers():
    return _headers("provider-1", "provider", "Juan Dela Cruz")


@pytest.fixture
def agency_headers():
    return _headers("agency-1", "agency", "CleanPro Agency")


@pytest.fixture
def admin_headers():
    return _headers("admin-1", "admin", "Site Admin")
