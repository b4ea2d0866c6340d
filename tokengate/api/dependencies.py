# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get the refresh token store and user directory
- Get the session manager
- Get the authenticated user

The JWT manager, hasher and settings are created once by create_app and
kept on app.state.

Example:
    @router.get("/auth/profile")
    async def profile(
        user: AccessTokenPayload = Depends(require_auth),
        manager: SessionManager = Depends(get_session_manager),
    ):
        ...
"""

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.api.middleware.auth import require_user
from tokengate.core.config.settings import Settings
from tokengate.domains.auth.jwt import AccessTokenPayload, JWTManager
from tokengate.domains.auth.password import PasswordHasher
from tokengate.domains.auth.service import SessionManager
from tokengate.domains.auth.store import RefreshTokenStore
from tokengate.domains.auth.users import UserDirectory
from tokengate.infrastructure.database.connection import get_session
from tokengate.infrastructure.database.refresh_tokens import SQLRefreshTokenStore
from tokengate.infrastructure.database.users import SQLUserDirectory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the request.

    Yields:
        AsyncSession, committed when the request succeeds.
    """
    async with get_session() as session:
        yield session


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_jwt_manager(request: Request) -> JWTManager:
    """Get the application's JWT manager."""
    return request.app.state.jwt_manager


def get_password_hasher(request: Request) -> PasswordHasher:
    """Get the application's credential hasher."""
    return request.app.state.hasher


def get_refresh_store(db: AsyncSession = Depends(get_db)) -> RefreshTokenStore:
    """Get the refresh token store for the request."""
    return SQLRefreshTokenStore(db)


def get_user_directory(db: AsyncSession = Depends(get_db)) -> UserDirectory:
    """Get the user directory for the request."""
    return SQLUserDirectory(db)


def get_session_manager(
    store: RefreshTokenStore = Depends(get_refresh_store),
    users: UserDirectory = Depends(get_user_directory),
    hasher: PasswordHasher = Depends(get_password_hasher),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
    settings: Settings = Depends(get_app_settings),
) -> SessionManager:
    """Get a SessionManager bound to the request's storage."""
    return SessionManager(
        store=store,
        users=users,
        hasher=hasher,
        jwt_manager=jwt_manager,
        call_timeout=settings.auth.call_timeout_seconds,
        refresh_lookup=settings.auth.refresh_lookup,
    )


def require_auth(request: Request) -> AccessTokenPayload:
    """Require an authenticated user.

    Args:
        request: HTTP request processed by AuthMiddleware.

    Returns:
        The verified access token payload.

    Raises:
        UnauthenticatedError: If no valid token was presented.
        AccessTokenExpiredError: If the token has expired.
    """
    return require_user(request)
