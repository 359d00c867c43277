"""
Pytest fixtures: test clients, environment overrides, bearer headers per actor type.
"""

from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from core.config import get_settings
from core.security import create_access_token
from main import create_app
from services.user_service import get_user_service


@pytest.fixture(autouse=True)
def fresh_state() -> Iterator[None]:
    """Each test sees settings re-read from env and an empty user store."""
    get_settings.cache_clear()
    get_user_service.cache_clear()
    yield
    get_settings.cache_clear()
    get_user_service.cache_clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


@pytest.fixture
def production_client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("ENVIRONMENT", "production")
    get_settings.cache_clear()
    return TestClient(create_app(), raise_server_exceptions=False)


@pytest.fixture
def make_headers() -> Callable[..., dict[str, str]]:
    """Build an Authorization header for an actor with the given role claims."""

    def _make(subject: str = "actor-1", **claims) -> dict[str, str]:
        token = create_access_token(subject, **claims)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def admin_headers(make_headers) -> dict[str, str]:
    return make_headers("admin-1", roles=["admin"])


@pytest.fixture
def staff_headers(make_headers) -> dict[str, str]:
    return make_headers("staff-1", role="staff", permissions={"view_profile": True})
