# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT token management utilities.

This module provides JWT token creation and validation using python-jose.
Access tokens and refresh tokens share one codec but are signed with
different secrets and lifetimes.

Expiry is checked against an injected clock rather than jose's own, with
no leeway: a token issued at ``iat`` with lifetime ``ttl`` is accepted on
``[iat, iat + ttl)`` and rejected from ``iat + ttl`` onward.

Example:
    >>> from tokengate.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.issue_access_token(principal)
    >>> payload = jwt_manager.decode_access(token)
"""

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Literal

from jose import JWTError as JoseJWTError, jwt
from pydantic import BaseModel, ValidationError

from tokengate.core.config.settings import JWTSettings
from tokengate.domains.auth.users import Principal

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current time in UTC."""
    return datetime.now(timezone.utc)


class AccessTokenPayload(BaseModel):
    """Claims carried by an access token.

    Attributes:
        sub: Principal id.
        email: Principal email at issue time.
        branch_id: Tenant attribute of the principal.
        type: Always "access".
        iat: Issued at timestamp.
        exp: Expiration timestamp.
        jti: Random token id.
    """

    sub: int
    email: str
    branch_id: int | None = None
    type: Literal["access"]
    iat: int
    exp: int
    jti: str


class RefreshTokenPayload(BaseModel):
    """Claims carried by a refresh token.

    Attributes:
        sub: Principal id.
        type: Always "refresh".
        jti: Id of the stored refresh token record.
        iat: Issued at timestamp.
        exp: Expiration timestamp.
    """

    sub: int
    type: Literal["refresh"]
    jti: str
    iat: int
    exp: int


class TokenPair(BaseModel):
    """Access and refresh token pair.

    Attributes:
        access_token: JWT access token string.
        refresh_token: JWT refresh token string.
        token_type: Token type (always "Bearer").
        expires_in: Access token lifetime in seconds.
        refresh_expires_in: Refresh token lifetime in seconds.
    """

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    refresh_expires_in: int


class TokenError(Exception):
    """Base exception for token operations."""

    pass


class ExpiredTokenError(TokenError):
    """Raised when a correctly signed token has expired."""

    pass


class InvalidTokenError(TokenError):
    """Raised when a token is malformed, tampered with, or of the wrong type."""

    pass


class TokenCodec:
    """Signs and verifies compact JWS tokens with an HMAC algorithm.

    Attributes:
        _algorithm: HMAC algorithm name (HS256, HS384, HS512).
        _clock: Source of the current time.
    """

    def __init__(self, algorithm: str = "HS256", clock: Clock = utc_now) -> None:
        self._algorithm = algorithm
        self._clock = clock

    def now(self) -> datetime:
        """Return the codec's current time."""
        return self._clock()

    def sign(self, claims: dict[str, Any], secret: str, ttl_seconds: int) -> str:
        """Sign claims into a token valid for ttl_seconds from now.

        Args:
            claims: Custom claims. ``iat`` and ``exp`` are set here.
            secret: HMAC secret.
            ttl_seconds: Token lifetime in seconds.

        Returns:
            Compact JWS string.
        """
        issued_at = int(self._clock().timestamp())
        payload = {
            **claims,
            "iat": issued_at,
            "exp": issued_at + ttl_seconds,
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def verify(self, token: str, secret: str) -> dict[str, Any]:
        """Verify a token's signature and expiry.

        Args:
            token: Compact JWS string.
            secret: HMAC secret it must be signed with.

        Returns:
            The decoded claims.

        Raises:
            InvalidTokenError: If the token is malformed or the signature
                does not match.
            ExpiredTokenError: If the token's exp is not in the future.
        """
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JoseJWTError as e:
            logger.debug("Token decode failed: %s", type(e).__name__)
            raise InvalidTokenError("Invalid token") from e

        exp = claims.get("exp")
        if not isinstance(exp, int) or isinstance(exp, bool):
            raise InvalidTokenError("Token has no valid exp claim")

        if exp <= self._clock().timestamp():
            raise ExpiredTokenError("Token has expired")

        return claims


class JWTManager:
    """JWT token creation and validation manager.

    Binds the codec to the configured secrets and lifetimes.

    Attributes:
        _settings: JWT configuration settings.
        _codec: Token codec.

    Example:
        >>> jwt_manager = JWTManager(settings.jwt)
        >>> tokens = jwt_manager.create_token_pair(principal, token_id="...")
        >>> jwt_manager.decode_refresh(tokens.refresh_token).jti
        '...'
    """

    def __init__(self, settings: JWTSettings, codec: TokenCodec | None = None) -> None:
        """Initialize the JWT manager.

        Args:
            settings: JWT configuration settings.
            codec: Token codec. Defaults to one using the configured algorithm.
        """
        self._settings = settings
        self._codec = codec or TokenCodec(algorithm=settings.algorithm)

    @property
    def access_ttl(self) -> int:
        """Access token lifetime in seconds."""
        return self._settings.access_expiration

    @property
    def refresh_ttl(self) -> int:
        """Refresh token lifetime in seconds."""
        return self._settings.refresh_expiration

    def issue_access_token(self, principal: Principal) -> str:
        """Create an access token for a principal.

        Args:
            principal: Authenticated principal.

        Returns:
            JWT access token string.
        """
        claims = {
            "sub": str(principal.id),
            "email": principal.email,
            "branch_id": principal.branch_id,
            "type": "access",
            "jti": secrets.token_urlsafe(16),
        }
        return self._codec.sign(
            claims, self._settings.access_secret_value, self.access_ttl
        )

    def issue_refresh_token(self, user_id: int, token_id: str) -> str:
        """Create a refresh token.

        Args:
            user_id: Principal id.
            token_id: Id of the refresh token record that will store its hash.

        Returns:
            JWT refresh token string.
        """
        claims = {
            "sub": str(user_id),
            "type": "refresh",
            "jti": token_id,
        }
        return self._codec.sign(
            claims, self._settings.refresh_secret_value, self.refresh_ttl
        )

    def create_token_pair(self, principal: Principal, token_id: str) -> TokenPair:
        """Create an access and refresh token pair.

        Args:
            principal: Authenticated principal.
            token_id: Id for the new refresh token record.

        Returns:
            TokenPair with access and refresh tokens.
        """
        return TokenPair(
            access_token=self.issue_access_token(principal),
            refresh_token=self.issue_refresh_token(principal.id, token_id),
            token_type="Bearer",
            expires_in=self.access_ttl,
            refresh_expires_in=self.refresh_ttl,
        )

    def decode_access(self, token: str) -> AccessTokenPayload:
        """Decode and validate an access token.

        Raises:
            ExpiredTokenError: If the token has expired.
            InvalidTokenError: If the token is invalid or not an access token.
        """
        claims = self._codec.verify(token, self._settings.access_secret_value)
        return self._parse(claims, "access", AccessTokenPayload)

    def decode_refresh(self, token: str) -> RefreshTokenPayload:
        """Decode and validate a refresh token.

        Raises:
            ExpiredTokenError: If the token has expired.
            InvalidTokenError: If the token is invalid or not a refresh token.
        """
        claims = self._codec.verify(token, self._settings.refresh_secret_value)
        return self._parse(claims, "refresh", RefreshTokenPayload)

    @staticmethod
    def _parse(claims: dict[str, Any], expected_type: str, model: type[BaseModel]) -> Any:
        if claims.get("type") != expected_type:
            raise InvalidTokenError(
                f"Expected {expected_type} token, got {claims.get('type')}"
            )
        try:
            return model.model_validate(claims)
        except ValidationError as e:
            logger.warning("Token claims rejected: %d errors", e.error_count())
            raise InvalidTokenError("Invalid token claims") from e
