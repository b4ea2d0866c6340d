# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exception handlers mapping auth errors to HTTP responses.

Every error body has the shape ``{"detail": <safe message>, "code": <slug>}``.
Internal details are logged, never returned.
"""

import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tokengate.domains.auth.errors import (
    AccessTokenExpiredError,
    AuthError,
    InvalidCredentialsError,
    ServiceUnavailableError,
    UnauthenticatedError,
    UnauthorizedError,
)
from tokengate.domains.auth.password import HashFormatError
from tokengate.utils.logging import get_logger

log = get_logger(__name__)

INTERNAL_ERROR = "An internal error occurred. Please try again later."
VALIDATION_ERROR = "Invalid request data."

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}

_STATUS_BY_ERROR: dict[type[AuthError], int] = {
    InvalidCredentialsError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnauthorizedError: status.HTTP_401_UNAUTHORIZED,
    UnauthenticatedError: status.HTTP_401_UNAUTHORIZED,
    AccessTokenExpiredError: status.HTTP_401_UNAUTHORIZED,
    ServiceUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: AuthError) -> int:
    """Return the HTTP status for an auth error."""
    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_401_UNAUTHORIZED


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render an AuthError."""
    status_code = status_for(exc)
    headers = BEARER_CHALLENGE if status_code == status.HTTP_401_UNAUTHORIZED else None

    log.info(
        "auth_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        code=exc.code,
        status=status_code,
    )

    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


async def hash_format_error_handler(request: Request, exc: HashFormatError) -> JSONResponse:
    """Render a corrupted stored hash as a generic 500."""
    error_id = str(uuid.uuid4())[:8]

    log.error(
        "internal_error",
        error_id=error_id,
        path=request.url.path,
        error_type=type(exc).__name__,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": f"{INTERNAL_ERROR} (ref: {error_id})", "code": "internal_error"},
    )


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Render a malformed request body as 400."""
    log.info(
        "validation_error",
        path=request.url.path,
        fields=[".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()],
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": VALIDATION_ERROR, "code": "invalid_request"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers on an application."""
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(HashFormatError, hash_format_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
