# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication errors raised across the session boundary.

Token codec errors (InvalidTokenError, ExpiredTokenError) never leave the
auth domain; the session manager and access guard translate them into
the errors below, which the API maps to HTTP responses.
"""


class AuthError(Exception):
    """Base exception for authentication failures.

    Attributes:
        message: Safe, client-facing message.
        code: Machine-readable slug.
    """

    code = "auth_error"

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)
        self.message = message


class InvalidCredentialsError(AuthError):
    """Raised when login fails for any reason tied to the credentials.

    Unknown email, inactive account and wrong password share this class
    and message so responses do not reveal which one it was.
    """

    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class UnauthorizedError(AuthError):
    """Raised when a refresh token or authenticated request is rejected."""

    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class UnauthenticatedError(AuthError):
    """Raised by the access guard when no valid access token is presented.

    Attributes:
        reason: "no token" or "invalid token".
    """

    def __init__(self, reason: str) -> None:
        super().__init__("Not authenticated")
        self.reason = reason
        self.code = reason.replace(" ", "_")


class AccessTokenExpiredError(AuthError):
    """Raised by the access guard when the access token has expired."""

    code = "token_expired"

    def __init__(self, message: str = "Access token expired") -> None:
        super().__init__(message)


class ServiceUnavailableError(AuthError):
    """Raised when a storage dependency fails or times out."""

    code = "service_unavailable"

    def __init__(self, message: str = "Service temporarily unavailable") -> None:
        super().__init__(message)
