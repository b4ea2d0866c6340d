# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQL-backed principal lookup."""

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.domains.auth.users import Principal
from tokengate.infrastructure.database.connection import DatabaseError
from tokengate.infrastructure.database.models.user import User


def to_principal(user: User) -> Principal:
    """Convert a User row to a Principal."""
    return Principal(
        id=user.id,
        email=user.email,
        password_hash=user.password_hash,
        branch_id=user.branch_id,
        first_name=user.first_name,
        last_name=user.last_name,
        is_active=user.is_active,
    )


class SQLUserDirectory:
    """UserDirectory on an AsyncSession. Email matching is case-insensitive."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_by_email(self, email: str) -> Principal | None:
        try:
            result = await self._db.execute(
                select(User).where(func.lower(User.email) == email.lower())
            )
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to load user", e) from e

        user = result.scalar_one_or_none()
        return to_principal(user) if user else None

    async def get_by_id(self, user_id: int) -> Principal | None:
        try:
            user = await self._db.get(User, user_id)
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to load user", e) from e

        return to_principal(user) if user else None
