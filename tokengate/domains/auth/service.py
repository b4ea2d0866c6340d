# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session manager: login, refresh token rotation and logout.

This module provides the SessionManager that orchestrates:
- Password login issuing an access/refresh token pair
- Refresh token rotation (each refresh token is accepted once)
- Logout revoking every refresh token of a user

Every call into the refresh token store or the user directory is bounded
by a timeout. A timeout or storage failure surfaces as
ServiceUnavailableError; storage details never reach the caller.

Example:
    >>> manager = SessionManager(store, users, hasher, jwt_manager)
    >>> result = await manager.login("a@x.com", "secret123")
    >>> tokens = await manager.refresh(result.tokens.refresh_token)
"""

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from datetime import timedelta
from typing import Literal, TypeVar
from uuid import uuid4

from tokengate.domains.auth.errors import (
    InvalidCredentialsError,
    ServiceUnavailableError,
    UnauthorizedError,
)
from tokengate.domains.auth.jwt import (
    AccessTokenPayload,
    Clock,
    ExpiredTokenError,
    InvalidTokenError,
    JWTManager,
    TokenPair,
    utc_now,
)
from tokengate.domains.auth.password import PasswordHasher
from tokengate.domains.auth.store import RefreshTokenRecord, RefreshTokenStore
from tokengate.domains.auth.users import Principal, UserDirectory
from tokengate.infrastructure.database.connection import DatabaseError
from tokengate.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

REFRESH_REJECTED = "Invalid or expired refresh token"


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login.

    Attributes:
        tokens: Issued access and refresh tokens.
        principal: The authenticated principal.
    """

    tokens: TokenPair
    principal: Principal


class SessionManager:
    """Authentication service for session management.

    Attributes:
        _store: Refresh token records.
        _users: Principal lookup.
        _hasher: Hasher for passwords and refresh tokens.
        _jwt_manager: JWT token manager.
        _clock: Source of the current time.
        _call_timeout: Seconds allowed per store/directory call.
        _refresh_lookup: "token_id" or "latest".
    """

    def __init__(
        self,
        store: RefreshTokenStore,
        users: UserDirectory,
        hasher: PasswordHasher,
        jwt_manager: JWTManager,
        clock: Clock = utc_now,
        call_timeout: float = 5.0,
        refresh_lookup: Literal["token_id", "latest"] = "token_id",
    ) -> None:
        """Initialize the session manager.

        Args:
            store: Refresh token store.
            users: User directory.
            hasher: Credential hasher.
            jwt_manager: JWT token manager.
            clock: Source of the current time. Must agree with the codec's.
            call_timeout: Timeout in seconds for each storage call.
            refresh_lookup: How the record of a refresh token is found.
        """
        self._store = store
        self._users = users
        self._hasher = hasher
        self._jwt_manager = jwt_manager
        self._clock = clock
        self._call_timeout = call_timeout
        self._refresh_lookup = refresh_lookup

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Await a storage call under the configured timeout.

        Raises:
            ServiceUnavailableError: On timeout or DatabaseError.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self._call_timeout)
        except asyncio.TimeoutError as e:
            logger.error("storage_timeout", operation=operation, timeout=self._call_timeout)
            raise ServiceUnavailableError() from e
        except DatabaseError as e:
            logger.error("storage_failed", operation=operation, error=e.message)
            raise ServiceUnavailableError() from e

    async def _issue(self, principal: Principal, device_info: str | None) -> TokenPair:
        """Sign a new token pair and persist the refresh token's hash."""
        token_id = str(uuid4())
        tokens = self._jwt_manager.create_token_pair(principal, token_id)

        now = self._clock()
        record = RefreshTokenRecord(
            id=token_id,
            user_id=principal.id,
            secret_hash=self._hasher.hash(tokens.refresh_token),
            expires_at=now + timedelta(seconds=self._jwt_manager.refresh_ttl),
            created_at=now,
            device_info=device_info,
        )
        await self._call("add", self._store.add(record))
        return tokens

    async def login(
        self,
        email: str,
        password: str,
        device_info: str | None = None,
    ) -> LoginResult:
        """Authenticate by email and password.

        Args:
            email: Login email.
            password: Plain text password.
            device_info: Optional client description stored with the token.

        Returns:
            LoginResult with tokens and the principal.

        Raises:
            InvalidCredentialsError: If the email is unknown, the account is
                inactive, or the password does not match.
            ServiceUnavailableError: If storage fails or times out.
        """
        principal = await self._call("get_by_email", self._users.get_by_email(email))

        if principal is None or not principal.is_active:
            self._hasher.verify_dummy(password)
            logger.info("login_rejected", reason="unknown_or_inactive")
            raise InvalidCredentialsError()

        if not self._hasher.verify(password, principal.password_hash):
            logger.info("login_rejected", reason="bad_password", user_id=principal.id)
            raise InvalidCredentialsError()

        tokens = await self._issue(principal, device_info)
        logger.info("login_succeeded", user_id=principal.id)
        return LoginResult(tokens=tokens, principal=principal)

    async def _find_record(self, user_id: int, token_id: str) -> RefreshTokenRecord | None:
        if self._refresh_lookup == "latest":
            return await self._call(
                "latest_for_user", self._store.latest_for_user(user_id)
            )
        record = await self._call("get", self._store.get(token_id))
        if record is not None and record.user_id != user_id:
            return None
        return record

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Rotate a refresh token.

        The presented token is consumed and a new pair is issued. A token
        is accepted at most once, even under concurrent use.

        Args:
            refresh_token: Current refresh token.

        Returns:
            New TokenPair.

        Raises:
            UnauthorizedError: If the token is invalid, expired, unknown,
                already used, or its principal is gone or inactive.
            ServiceUnavailableError: If storage fails or times out.
        """
        try:
            payload = self._jwt_manager.decode_refresh(refresh_token)
        except (ExpiredTokenError, InvalidTokenError) as e:
            logger.info("refresh_rejected", reason=type(e).__name__)
            raise UnauthorizedError(REFRESH_REJECTED) from e

        record = await self._find_record(payload.sub, payload.jti)
        if record is None:
            logger.info("refresh_rejected", reason="no_record", user_id=payload.sub)
            raise UnauthorizedError(REFRESH_REJECTED)

        if not self._hasher.verify(refresh_token, record.secret_hash):
            logger.warning("refresh_rejected", reason="hash_mismatch", user_id=payload.sub)
            raise UnauthorizedError(REFRESH_REJECTED)

        now = self._clock()
        if record.is_expired(now):
            await self._call("delete", self._store.delete(record.id))
            logger.info("refresh_rejected", reason="record_expired", user_id=payload.sub)
            raise UnauthorizedError(REFRESH_REJECTED)

        principal = await self._call("get_by_id", self._users.get_by_id(payload.sub))
        if principal is None or not principal.is_active:
            await self._call("delete", self._store.delete(record.id))
            logger.info("refresh_rejected", reason="principal_unavailable", user_id=payload.sub)
            raise UnauthorizedError(REFRESH_REJECTED)

        consumed = await self._call("consume", self._store.consume(record.id, now))
        if not consumed:
            logger.warning("refresh_rejected", reason="already_used", user_id=payload.sub)
            raise UnauthorizedError(REFRESH_REJECTED)

        tokens = await self._issue(principal, record.device_info)
        logger.info("tokens_refreshed", user_id=principal.id)
        return tokens

    async def logout(self, user_id: int) -> None:
        """Revoke every refresh token of a user.

        Raises:
            ServiceUnavailableError: If storage fails or times out.
        """
        count = await self._call("delete_for_user", self._store.delete_for_user(user_id))
        logger.info("logged_out", user_id=user_id, revoked=count)

    async def validate_access_payload(self, payload: AccessTokenPayload) -> Principal | None:
        """Re-load the principal named by an access token.

        Args:
            payload: Verified access token payload.

        Returns:
            The principal if its id still matches the token's subject,
            otherwise None.

        Raises:
            ServiceUnavailableError: If storage fails or times out.
        """
        principal = await self._call("get_by_email", self._users.get_by_email(payload.email))
        if principal is None or principal.id != payload.sub:
            return None
        return principal
