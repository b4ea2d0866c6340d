# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for tokengate.

Example:
    >>> from tokengate.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from tokengate.core.config.settings import (
    APISettings,
    AuthSettings,
    BootstrapSettings,
    CORSSettings,
    DatabaseSettings,
    JWTSettings,
    RateLimitSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "JWTSettings",
    "AuthSettings",
    "DatabaseSettings",
    "RateLimitSettings",
    "CORSSettings",
    "APISettings",
    "BootstrapSettings",
]
