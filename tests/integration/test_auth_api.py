# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the authentication HTTP API.

The application is built by create_app with in-memory storage swapped in
through dependency overrides. The lifespan is not run, so no database is
needed.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import SecretStr

from tokengate.api.app import create_app
from tokengate.api.dependencies import get_refresh_store, get_user_directory
from tokengate.api.middleware.auth import PUBLIC_PATHS
from tokengate.core.config.settings import AuthSettings, JWTSettings, RateLimitSettings, Settings
from tokengate.domains.auth.jwt import TokenCodec
from tokengate.domains.auth.password import PasswordHasher
from tokengate.domains.auth.store import InMemoryRefreshTokenStore
from tokengate.domains.auth.users import InMemoryUserDirectory, Principal
from tokengate.infrastructure.database.connection import DatabaseError

pytestmark = pytest.mark.integration

ACCESS_SECRET = "api-access-secret-for-integration-tests-0123"
REFRESH_SECRET = "api-refresh-secret-for-integration-tests-0123"

USER_EMAIL = "a@x.com"
USER_PASSWORD = "secret123"


@pytest.fixture
def api_settings() -> Settings:
    """Create settings with fixed secrets and a cheap bcrypt cost."""
    return Settings(
        environment="test",
        jwt=JWTSettings(
            secret=SecretStr(ACCESS_SECRET),
            refresh_secret=SecretStr(REFRESH_SECRET),
        ),
        auth=AuthSettings(bcrypt_rounds=4),
        rate_limit=RateLimitSettings(enabled=False),
    )


@pytest.fixture
def api_store() -> InMemoryRefreshTokenStore:
    """Create the refresh token store shared across requests."""
    return InMemoryRefreshTokenStore()


@pytest.fixture
def api_users() -> InMemoryUserDirectory:
    """Create the user directory with a@x.com registered."""
    directory = InMemoryUserDirectory()
    directory.add(
        USER_EMAIL,
        PasswordHasher(rounds=4).hash(USER_PASSWORD),
        branch_id=7,
        first_name="Ada",
        last_name="Lovelace",
    )
    return directory


@pytest.fixture
def app(
    api_settings: Settings,
    api_store: InMemoryRefreshTokenStore,
    api_users: InMemoryUserDirectory,
) -> FastAPI:
    """Create the application over in-memory storage."""
    app = create_app(api_settings)
    app.dependency_overrides[get_refresh_store] = lambda: api_store
    app.dependency_overrides[get_user_directory] = lambda: api_users
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create a test client (lifespan not started)."""
    return TestClient(app)


def login(client: TestClient, email: str = USER_EMAIL, password: str = USER_PASSWORD):
    return client.post("/auth/login", json={"email": email, "password": password})


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestHealth:
    """Tests for GET /health."""

    def test_health(self, client: TestClient) -> None:
        """Test that health reports status and environment."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["environment"] == "test"


class TestLogin:
    """Tests for POST /auth/login."""

    def test_login_success(
        self,
        client: TestClient,
        api_store: InMemoryRefreshTokenStore,
    ) -> None:
        """Test that valid credentials return a token pair and the profile."""
        response = login(client)

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "Bearer"
        assert body["expires_in"] == 3600
        assert body["refresh_expires_in"] == 604800
        assert body["access_token"]
        assert body["refresh_token"]
        assert body["principal"]["email"] == USER_EMAIL
        assert body["principal"]["branch_id"] == 7
        assert "password_hash" not in body["principal"]
        assert len(api_store) == 1

    def test_login_records_device_info(
        self,
        client: TestClient,
        api_store: InMemoryRefreshTokenStore,
    ) -> None:
        """Test that the User-Agent is stored with the refresh token."""
        client.post(
            "/auth/login",
            json={"email": USER_EMAIL, "password": USER_PASSWORD},
            headers={"User-Agent": "pytest-agent"},
        )

        record = next(iter(api_store._records.values()))
        assert record.device_info == "pytest-agent"

    def test_wrong_password_is_422(self, client: TestClient) -> None:
        """Test that a wrong password is rejected as invalid credentials."""
        response = login(client, password="wrong")

        assert response.status_code == 422
        assert response.json() == {
            "detail": "Invalid credentials",
            "code": "invalid_credentials",
        }

    def test_unknown_email_matches_wrong_password(self, client: TestClient) -> None:
        """Test that an unknown email is indistinguishable from a bad password."""
        unknown = login(client, email="nobody@x.com")
        wrong = login(client, password="wrong")

        assert unknown.status_code == wrong.status_code
        assert unknown.json() == wrong.json()

    def test_malformed_body_is_400(self, client: TestClient) -> None:
        """Test that a body failing validation is rejected with 400."""
        response = client.post("/auth/login", json={"email": "not-an-email"})

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_request"

    def test_storage_failure_is_503(self, app: FastAPI, client: TestClient) -> None:
        """Test that a failing user directory surfaces as 503."""
        broken = MagicMock()
        broken.get_by_email = AsyncMock(
            side_effect=DatabaseError("Failed to load user", RuntimeError("down"))
        )
        app.dependency_overrides[get_user_directory] = lambda: broken

        response = login(client)

        assert response.status_code == 503
        assert response.json()["code"] == "service_unavailable"
        assert "down" not in response.text

    def test_corrupt_stored_hash_is_500(
        self,
        client: TestClient,
        api_users: InMemoryUserDirectory,
    ) -> None:
        """Test that a malformed stored hash is a generic 500."""
        api_users.add("broken@x.com", "not-a-bcrypt-hash")

        response = login(client, email="broken@x.com")

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "internal_error"
        assert "bcrypt" not in body["detail"]


class TestProfile:
    """Tests for GET /auth/profile."""

    def test_profile_success(self, client: TestClient) -> None:
        """Test that a valid access token returns the profile."""
        token = login(client).json()["access_token"]

        response = client.get("/auth/profile", headers=bearer(token))

        assert response.status_code == 200
        body = response.json()
        assert body["email"] == USER_EMAIL
        assert body["first_name"] == "Ada"
        assert "password_hash" not in body

    def test_no_token_is_401(self, client: TestClient) -> None:
        """Test that a missing token is rejected with a Bearer challenge."""
        response = client.get("/auth/profile")

        assert response.status_code == 401
        assert response.json()["code"] == "no_token"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token_is_401(self, client: TestClient) -> None:
        """Test that garbage is rejected as invalid_token."""
        response = client.get("/auth/profile", headers=bearer("garbage"))

        assert response.status_code == 401
        assert response.json()["code"] == "invalid_token"

    def test_refresh_token_as_access_is_401(self, client: TestClient) -> None:
        """Test that a refresh token is not accepted as an access token."""
        token = login(client).json()["refresh_token"]

        response = client.get("/auth/profile", headers=bearer(token))

        assert response.status_code == 401
        assert response.json()["code"] == "invalid_token"

    def test_expired_token_is_401(self, client: TestClient) -> None:
        """Test that an expired token is rejected as token_expired."""
        past = TokenCodec(clock=lambda: datetime.now(timezone.utc) - timedelta(hours=2))
        token = past.sign(
            {"sub": "1", "email": USER_EMAIL, "branch_id": 7, "type": "access", "jti": "old"},
            ACCESS_SECRET,
            3600,
        )

        response = client.get("/auth/profile", headers=bearer(token))

        assert response.status_code == 401
        assert response.json()["code"] == "token_expired"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_deleted_user_is_401(
        self,
        client: TestClient,
        api_users: InMemoryUserDirectory,
    ) -> None:
        """Test that a token for a removed user is rejected."""
        body = login(client).json()
        api_users.remove(body["principal"]["id"])

        response = client.get("/auth/profile", headers=bearer(body["access_token"]))

        assert response.status_code == 401
        assert response.json()["code"] == "unauthorized"


class TestRefresh:
    """Tests for POST /auth/refresh."""

    def test_refresh_rotates_tokens(self, client: TestClient) -> None:
        """Test that a refresh token yields a new pair."""
        first = login(client).json()

        response = client.post("/auth/refresh", json={"refresh_token": first["refresh_token"]})

        assert response.status_code == 200
        body = response.json()
        assert body["refresh_token"] != first["refresh_token"]
        assert client.get("/auth/profile", headers=bearer(body["access_token"])).status_code == 200

    def test_replayed_refresh_token_is_401(self, client: TestClient) -> None:
        """Test that a refresh token is accepted only once."""
        refresh_token = login(client).json()["refresh_token"]
        client.post("/auth/refresh", json={"refresh_token": refresh_token})

        response = client.post("/auth/refresh", json={"refresh_token": refresh_token})

        assert response.status_code == 401
        assert response.json() == {
            "detail": "Invalid or expired refresh token",
            "code": "unauthorized",
        }

    def test_access_token_as_refresh_is_401(self, client: TestClient) -> None:
        """Test that an access token cannot be used to refresh."""
        access_token = login(client).json()["access_token"]

        response = client.post("/auth/refresh", json={"refresh_token": access_token})

        assert response.status_code == 401

    def test_missing_refresh_token_is_400(self, client: TestClient) -> None:
        """Test that an empty body is a validation error."""
        response = client.post("/auth/refresh", json={})

        assert response.status_code == 400


class TestLogout:
    """Tests for POST /auth/logout."""

    def test_logout_revokes_refresh_tokens(
        self,
        client: TestClient,
        api_store: InMemoryRefreshTokenStore,
    ) -> None:
        """Test that logout removes every refresh token of the user."""
        first = login(client).json()
        second = login(client).json()

        response = client.post("/auth/logout", headers=bearer(second["access_token"]))

        assert response.status_code == 204
        assert len(api_store) == 0
        for tokens in (first, second):
            refreshed = client.post(
                "/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
            )
            assert refreshed.status_code == 401

    def test_logout_requires_token(self, client: TestClient) -> None:
        """Test that logout without a token is 401."""
        response = client.post("/auth/logout")

        assert response.status_code == 401
        assert response.json()["code"] == "no_token"


class TestPrincipalShape:
    """Tests for the sanitized principal view."""

    def test_principal_response_omits_hash(self) -> None:
        """Test that the response model has no password hash field."""
        from tokengate.models.auth import PrincipalResponse

        principal = Principal(id=1, email=USER_EMAIL, password_hash="$2b$04$x")

        dumped = PrincipalResponse.from_principal(principal).model_dump()

        assert "password_hash" not in dumped
        assert dumped["id"] == 1


class TestRateLimit:
    """Tests for the per-application login and refresh limits."""

    def make_client(
        self,
        api_settings: Settings,
        api_store: InMemoryRefreshTokenStore,
        api_users: InMemoryUserDirectory,
        auth_limit: str,
    ) -> TestClient:
        settings = api_settings.model_copy(
            update={"rate_limit": RateLimitSettings(enabled=True, auth=auth_limit)}
        )
        app = create_app(settings)
        app.dependency_overrides[get_refresh_store] = lambda: api_store
        app.dependency_overrides[get_user_directory] = lambda: api_users
        return TestClient(app)

    def test_login_limit_comes_from_app_settings(
        self,
        api_settings: Settings,
        api_store: InMemoryRefreshTokenStore,
        api_users: InMemoryUserDirectory,
    ) -> None:
        """Test that the auth limit passed to create_app is enforced."""
        client = self.make_client(api_settings, api_store, api_users, "1/minute")

        statuses = [login(client, password="wrong").status_code for _ in range(3)]

        assert statuses == [422, 429, 429]

    def test_rate_limited_response(
        self,
        api_settings: Settings,
        api_store: InMemoryRefreshTokenStore,
        api_users: InMemoryUserDirectory,
    ) -> None:
        """Test the 429 body and a Retry-After matching the limit's window."""
        client = self.make_client(api_settings, api_store, api_users, "1/hour")
        client.post("/auth/refresh", json={"refresh_token": "x"})

        response = client.post("/auth/refresh", json={"refresh_token": "x"})

        assert response.status_code == 429
        assert response.json()["code"] == "rate_limited"
        assert response.headers["Retry-After"] == "3600"

    def test_disabled_limiter_allows_requests(self, client: TestClient) -> None:
        """Test that RATE_LIMIT_ENABLED=false turns limiting off."""
        statuses = {login(client, password="wrong").status_code for _ in range(15)}

        assert statuses == {422}

    def test_apps_do_not_share_counters(
        self,
        api_settings: Settings,
        api_store: InMemoryRefreshTokenStore,
        api_users: InMemoryUserDirectory,
    ) -> None:
        """Test that each application gets its own limiter."""
        first = self.make_client(api_settings, api_store, api_users, "1/minute")
        second = self.make_client(api_settings, api_store, api_users, "1/minute")

        login(first, password="wrong")

        assert login(second, password="wrong").status_code == 422


class TestPublicPaths:
    """Tests for the paths that skip authentication."""

    def test_public_paths_are_routed(self, app: FastAPI) -> None:
        """Test that every public path outside the docs is a real route."""
        docs = {"/docs", "/redoc", "/openapi.json"}
        routes = {route.path for route in app.routes}

        assert "/" not in PUBLIC_PATHS
        assert PUBLIC_PATHS - docs <= routes
