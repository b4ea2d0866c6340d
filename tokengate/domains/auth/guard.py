# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access token verification for protected requests."""

import logging

from tokengate.domains.auth.errors import AccessTokenExpiredError, UnauthenticatedError
from tokengate.domains.auth.jwt import (
    AccessTokenPayload,
    ExpiredTokenError,
    InvalidTokenError,
    JWTManager,
)

logger = logging.getLogger(__name__)


class AccessGuard:
    """Authenticates an Authorization header value.

    A pure function of the header, the access secret and the clock; it
    performs no storage lookups.

    Example:
        >>> guard = AccessGuard(jwt_manager)
        >>> payload = guard.authenticate("Bearer eyJ...")
        >>> payload.sub
        42
    """

    def __init__(self, jwt_manager: JWTManager) -> None:
        self._jwt_manager = jwt_manager

    @staticmethod
    def extract_token(authorization: str | None) -> str | None:
        """Extract the token from a ``Bearer <token>`` header value.

        Args:
            authorization: Raw header value.

        Returns:
            The token, or None if the header is missing or malformed.
        """
        if not authorization:
            return None

        parts = authorization.split(" ")
        if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
            return None

        return parts[1]

    def authenticate(self, authorization: str | None) -> AccessTokenPayload:
        """Verify the access token in an Authorization header.

        Args:
            authorization: Raw header value.

        Returns:
            The access token payload.

        Raises:
            UnauthenticatedError: If no bearer token is present ("no token")
                or the token fails verification ("invalid token").
            AccessTokenExpiredError: If the token has expired.
        """
        token = self.extract_token(authorization)
        if token is None:
            raise UnauthenticatedError("no token")

        try:
            return self._jwt_manager.decode_access(token)
        except ExpiredTokenError as e:
            raise AccessTokenExpiredError() from e
        except InvalidTokenError as e:
            logger.debug("Access token rejected: %s", e)
            raise UnauthenticatedError("invalid token") from e
