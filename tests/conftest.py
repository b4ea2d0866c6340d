# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- A controllable clock shared by the token codec and session manager
- JWT manager, hasher, in-memory store and user directory
- A registered user (a@x.com / secret123)
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from tokengate.domains.auth.jwt import JWTManager, TokenCodec
from tokengate.domains.auth.password import PasswordHasher
from tokengate.domains.auth.service import SessionManager
from tokengate.domains.auth.store import InMemoryRefreshTokenStore
from tokengate.domains.auth.users import InMemoryUserDirectory, Principal

ACCESS_SECRET = "test-access-secret-for-jwt-testing-0123456789"
REFRESH_SECRET = "test-refresh-secret-for-jwt-testing-0123456789"

USER_EMAIL = "a@x.com"
USER_PASSWORD = "secret123"


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Settable clock returning aware UTC datetimes."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    """Provide a clock fixed at 2026-01-01T00:00:00Z."""
    return FakeClock(datetime(2026, 1, 1, tzinfo=timezone.utc))


# =============================================================================
# Auth Component Fixtures
# =============================================================================


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.access_secret_value = ACCESS_SECRET
    settings.refresh_secret_value = REFRESH_SECRET
    settings.algorithm = "HS256"
    settings.access_expiration = 3600
    settings.refresh_expiration = 604800
    return settings


@pytest.fixture
def codec(clock: FakeClock) -> TokenCodec:
    """Create a token codec driven by the test clock."""
    return TokenCodec(algorithm="HS256", clock=clock)


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock, codec: TokenCodec) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings, codec=codec)


@pytest.fixture
def hasher() -> PasswordHasher:
    """Create a hasher with the minimum cost factor."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def users() -> InMemoryUserDirectory:
    """Create an empty user directory."""
    return InMemoryUserDirectory()


@pytest.fixture
def registered_user(users: InMemoryUserDirectory, hasher: PasswordHasher) -> Principal:
    """Register a@x.com with password secret123."""
    return users.add(
        USER_EMAIL,
        hasher.hash(USER_PASSWORD),
        branch_id=7,
        first_name="Ada",
        last_name="Lovelace",
    )


@pytest.fixture
def store() -> InMemoryRefreshTokenStore:
    """Create an empty refresh token store."""
    return InMemoryRefreshTokenStore()


@pytest.fixture
def session_manager(
    store: InMemoryRefreshTokenStore,
    users: InMemoryUserDirectory,
    hasher: PasswordHasher,
    jwt_manager: JWTManager,
    clock: FakeClock,
) -> SessionManager:
    """Create a session manager over the in-memory store and directory."""
    return SessionManager(
        store=store,
        users=users,
        hasher=hasher,
        jwt_manager=jwt_manager,
        clock=clock,
        call_timeout=1.0,
    )
