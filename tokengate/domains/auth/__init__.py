# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain services.

This module provides session credential services:
- Password and refresh token hashing
- JWT access and refresh token creation and validation
- Refresh token storage and rotation
- Access token verification for protected requests

Exports:
    PasswordHasher: Secure hashing using bcrypt.
    JWTManager: JWT token creation and validation.
    AccessGuard: Authorization header verification.
    SessionManager: Login, refresh and logout.
"""

from tokengate.domains.auth.guard import AccessGuard
from tokengate.domains.auth.jwt import JWTManager, TokenCodec, TokenPair
from tokengate.domains.auth.password import HashFormatError, PasswordHasher
from tokengate.domains.auth.store import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenStore,
)
from tokengate.domains.auth.users import InMemoryUserDirectory, Principal, UserDirectory
from tokengate.domains.auth.service import LoginResult, SessionManager

__all__ = [
    "PasswordHasher",
    "HashFormatError",
    "JWTManager",
    "TokenCodec",
    "TokenPair",
    "AccessGuard",
    "SessionManager",
    "LoginResult",
    "RefreshTokenRecord",
    "RefreshTokenStore",
    "InMemoryRefreshTokenStore",
    "Principal",
    "UserDirectory",
    "InMemoryUserDirectory",
]
