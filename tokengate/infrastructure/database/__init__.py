# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure.

Provides the SQLAlchemy async connection, ORM models, and SQL-backed
implementations of the refresh token store and user directory.

Example:
    from tokengate.infrastructure.database import get_session, SQLRefreshTokenStore

    async with get_session() as session:
        store = SQLRefreshTokenStore(session)
        record = await store.get(token_id)
"""

from tokengate.infrastructure.database.connection import (
    DatabaseError,
    close_database,
    create_schema,
    get_engine,
    get_session,
    get_sessionmaker,
    init_database,
)
from tokengate.infrastructure.database.refresh_tokens import SQLRefreshTokenStore
from tokengate.infrastructure.database.seeds import seed_user
from tokengate.infrastructure.database.users import SQLUserDirectory

__all__ = [
    # Connection
    "DatabaseError",
    "init_database",
    "close_database",
    "create_schema",
    "get_engine",
    "get_sessionmaker",
    "get_session",
    # Stores
    "SQLRefreshTokenStore",
    "SQLUserDirectory",
    # Seeds
    "seed_user",
]
