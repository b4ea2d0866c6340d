# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication endpoints.

This module provides the session endpoints:
- POST /login - Authenticate with email and password
- GET /profile - Get the authenticated user
- POST /refresh - Rotate a refresh token
- POST /logout - Revoke all refresh tokens of the caller

Login and refresh are rate limited per client IP by the application's
limiter, so the router is built per application with create_router().

Failures are raised as auth errors and rendered by the handlers in
tokengate.api.errors.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from slowapi import Limiter

from tokengate.api.dependencies import get_session_manager, require_auth
from tokengate.api.middleware.rate_limit import get_ip_only
from tokengate.domains.auth.errors import UnauthorizedError
from tokengate.domains.auth.jwt import AccessTokenPayload
from tokengate.domains.auth.service import SessionManager
from tokengate.models.auth import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    PrincipalResponse,
    RefreshTokenRequest,
    TokenResponse,
)

logger = logging.getLogger(__name__)

UNAUTHORIZED_RESPONSE = {status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}}


def _device_info(request: Request) -> str | None:
    """Describe the client for the stored refresh token."""
    user_agent = request.headers.get("User-Agent")
    return user_agent[:255] if user_agent else None


async def login(
    request: Request,
    data: LoginRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> LoginResponse:
    """Authenticate a user.

    Args:
        request: HTTP request (rate limiting, device info).
        data: Login credentials.
        manager: Session manager.

    Returns:
        LoginResponse with tokens and the user profile.
    """
    result = await manager.login(
        email=data.email,
        password=data.password,
        device_info=_device_info(request),
    )

    return LoginResponse(
        **result.tokens.model_dump(),
        principal=PrincipalResponse.from_principal(result.principal),
    )


async def profile(
    user: AccessTokenPayload = Depends(require_auth),
    manager: SessionManager = Depends(get_session_manager),
) -> PrincipalResponse:
    """Get the authenticated user's profile.

    Args:
        user: Verified access token payload.
        manager: Session manager.

    Returns:
        PrincipalResponse.

    Raises:
        UnauthorizedError: If the token's user no longer exists.
    """
    principal = await manager.validate_access_payload(user)
    if principal is None:
        raise UnauthorizedError()
    return PrincipalResponse.from_principal(principal)


async def refresh_tokens(
    request: Request,
    data: RefreshTokenRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> TokenResponse:
    """Rotate a refresh token.

    Args:
        request: HTTP request (rate limiting).
        data: Refresh token request.
        manager: Session manager.

    Returns:
        TokenResponse with new tokens.
    """
    tokens = await manager.refresh(data.refresh_token)
    return TokenResponse.from_pair(tokens)


async def logout(
    user: AccessTokenPayload = Depends(require_auth),
    manager: SessionManager = Depends(get_session_manager),
) -> None:
    """Logout on all devices.

    Args:
        user: Verified access token payload.
        manager: Session manager.
    """
    await manager.logout(user.sub)


def create_router(limiter: Limiter, auth_limit: str) -> APIRouter:
    """Build the auth router with login and refresh bound to a limiter.

    Args:
        limiter: The application's slowapi limiter.
        auth_limit: Limit string for login and refresh (e.g. "10/minute").

    Returns:
        APIRouter to mount under /auth.
    """
    router = APIRouter()
    limited = limiter.limit(auth_limit, key_func=get_ip_only)

    router.add_api_route(
        "/login",
        limited(login),
        methods=["POST"],
        response_model=LoginResponse,
        summary="Login",
        description="Authenticate with email and password and get access and refresh tokens.",
        responses={
            status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": ErrorResponse},
            status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        },
    )
    router.add_api_route(
        "/profile",
        profile,
        methods=["GET"],
        response_model=PrincipalResponse,
        summary="Get current user",
        description="Get the profile of the authenticated user.",
        responses=UNAUTHORIZED_RESPONSE,
    )
    router.add_api_route(
        "/refresh",
        limited(refresh_tokens),
        methods=["POST"],
        response_model=TokenResponse,
        summary="Refresh tokens",
        description="Exchange a refresh token for a new access and refresh token pair.",
        responses=UNAUTHORIZED_RESPONSE,
    )
    router.add_api_route(
        "/logout",
        logout,
        methods=["POST"],
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Logout",
        description="Revoke every refresh token of the authenticated user.",
        responses=UNAUTHORIZED_RESPONSE,
    )

    return router
