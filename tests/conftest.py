"""
Shared fixtures. Every test gets fresh settings, stores and app.
"""

import pytest
from fastapi.testclient import TestClient

from lorekeeper.api.app import AppState, create_app
from lorekeeper.auth import AuthorizationGuard, IdentityVerifier, TokenService
from lorekeeper.config import Settings
from lorekeeper.core.models import Role
from lorekeeper.storage import create_local_storage


TEST_SECRET = "test-secret-key-that-is-at-least-32-bytes"


@pytest.fixture
def settings():
    return Settings(
        jwt_secret_key=TEST_SECRET,
        password_hash_iterations=1_000,
        body_read_timeout_seconds=0.5,
        admin_email="admin@example.com",
        admin_password="admin-password",
    )


@pytest.fixture
def storage(settings):
    return create_local_storage(settings.password_hash_iterations)


@pytest.fixture
def tokens(settings):
    return TokenService(settings)


@pytest.fixture
def verifier(tokens, storage):
    return IdentityVerifier(tokens, storage.revocations)


@pytest.fixture
def guard():
    return AuthorizationGuard()


@pytest.fixture
def state(settings, storage):
    """Fully wired app state without the HTTP layer."""
    return AppState(settings, storage)


@pytest.fixture
def client(settings, storage):
    return TestClient(create_app(settings, storage))


@pytest.fixture
def user_token(tokens):
    return tokens.issue("user-1", Role.USER)


@pytest.fixture
def admin_token(tokens):
    return tokens.issue("admin-1", Role.ADMIN)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
