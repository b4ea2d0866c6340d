# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

Login and refresh are limited per client IP. Each application gets its
own limiter built from its RateLimitSettings; counters are kept in
process memory.

Example:
    limiter = create_limiter(settings.rate_limit)
    app.state.limiter = limiter
    app.include_router(auth.create_router(limiter, settings.rate_limit.auth))
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from tokengate.core.config.settings import RateLimitSettings

logger = logging.getLogger(__name__)


def get_ip_only(request: Request) -> str:
    """Get client IP address only.

    Used for login and refresh where the user is not yet authenticated.

    Args:
        request: HTTP request.

    Returns:
        IP address string.
    """
    return get_remote_address(request)


def create_limiter(settings: RateLimitSettings) -> Limiter:
    """Create a limiter for one application.

    Args:
        settings: Rate limit settings (enabled flag).

    Returns:
        slowapi Limiter with in-memory storage.
    """
    return Limiter(
        key_func=get_ip_only,
        storage_uri="memory://",
        enabled=settings.enabled,
    )


def retry_after_seconds(exc: RateLimitExceeded) -> int:
    """Length of the window of the limit that was hit."""
    return exc.limit.limit.get_expiry()


async def rate_limit_exceeded_handler(
    request: Request,
    exc: RateLimitExceeded,
) -> JSONResponse:
    """Handle rate limit exceeded errors.

    Args:
        request: HTTP request.
        exc: Rate limit exceeded exception.

    Returns:
        429 JSON response with Retry-After set to the limit's window.
    """
    logger.warning(
        "Rate limit exceeded: %s for %s",
        exc.detail,
        get_ip_only(request),
    )

    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests. Please try again later.",
            "code": "rate_limited",
        },
        headers={"Retry-After": str(retry_after_seconds(exc))},
    )
