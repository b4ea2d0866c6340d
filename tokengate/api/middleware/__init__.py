# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

Exports:
    AuthMiddleware: JWT authentication middleware.
    create_limiter: Build the slowapi limiter for login and refresh.
"""

from tokengate.api.middleware.auth import AuthMiddleware
from tokengate.api.middleware.rate_limit import create_limiter, rate_limit_exceeded_handler

__all__ = [
    "AuthMiddleware",
    "create_limiter",
    "rate_limit_exceeded_handler",
]
