import os
from dataclasses import replace
from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from rahaseva_api.app.core.config import Settings  # noqa: E402
from rahaseva_api.app.core.security import create_access_token  # noqa: E402
from rahaseva_api.app.main import create_app  # noqa: E402
from rahaseva_api.app.store import MockDataStore  # noqa: E402

TEST_SECRET = "test-secret"


@pytest.fixture()
def settings() -> Settings:
    """
    Settings for a mock-mode app: no database, a fixed secret and no retries.
    """
    return replace(
        Settings(),
        jwt_secret=TEST_SECRET,
        database_url="",
        db_max_retry_attempts=1,
        log_level="WARNING",
    )


@pytest.fixture()
def mock_store() -> MockDataStore:
    return MockDataStore()


@pytest.fixture()
def app(settings, mock_store):
    return create_app(settings, mock_store=mock_store)


@pytest.fixture()
def client(app):
    """
    TestClient serving from the seeded mock store.  Entering the context
    runs the lifespan, like a real server start.
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def live_settings(settings, tmp_path) -> Settings:
    return replace(settings, database_url=str(tmp_path / "rahaseva.db"))


@pytest.fixture()
def live_app(live_settings):
    return create_app(live_settings)


@pytest.fixture()
def live_client(live_app):
    """
    TestClient backed by a fresh SQLite file.  The live store starts empty,
    so accounts have to be registered first.
    """
    with TestClient(live_app) as test_client:
        yield test_client


def make_token(
    user_id: str,
    role: str = "user",
    *,
    name: str = "",
    email: str = "",
    secret: str = TEST_SECRET,
    expires_in: Optional[int] = None,
) -> str:
    claim = {"id": user_id, "role": role, "name": name, "email": email}
    return create_access_token({"user": claim}, expires_delta=expires_in, secret=secret)


def auth_headers(user_id: str, role: str = "user", **kwargs) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, role, **kwargs)}"}


@pytest.fixture()
def user_headers() -> Dict[str, str]:
    """Demo customer ``user1`` from the mock data."""
    return auth_headers("user1", "user", email="test@example.com")


@pytest.fixture()
def provider_headers() -> Dict[str, str]:
    """Demo helper ``provider1``; also the owner of ``volunteer1``."""
    return auth_headers("provider1", "helper", email="provider@example.com")


@pytest.fixture()
def admin_headers() -> Dict[str, str]:
    return auth_headers("admin1", "admin", email="admin@example.com")
