# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models.

Importing this package registers every table on Base.metadata.
"""

from tokengate.infrastructure.database.models.base import Base, TimestampMixin
from tokengate.infrastructure.database.models.refresh_token import RefreshToken
from tokengate.infrastructure.database.models.user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "RefreshToken",
]
