# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQL-backed refresh token store.

Every mutating call commits before returning, so a record deleted while
rejecting a token stays deleted even though the request then fails.

Rotation relies on a conditional delete:

    DELETE FROM refresh_tokens WHERE id = :id AND expires_at > :now

The affected row count tells the caller whether it won the rotation.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.domains.auth.store import RefreshTokenRecord
from tokengate.infrastructure.database.connection import DatabaseError
from tokengate.infrastructure.database.models.refresh_token import RefreshToken

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_record(row: RefreshToken) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        id=row.id,
        user_id=row.user_id,
        secret_hash=row.token_hash,
        expires_at=_as_utc(row.expires_at),
        created_at=_as_utc(row.created_at),
        device_info=row.device_info,
    )


class SQLRefreshTokenStore:
    """RefreshTokenStore on an AsyncSession.

    Attributes:
        _db: Database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def _commit(self, operation: str) -> None:
        try:
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            raise DatabaseError(f"Failed to {operation}", e) from e

    async def add(self, record: RefreshTokenRecord) -> None:
        self._db.add(
            RefreshToken(
                id=record.id,
                user_id=record.user_id,
                token_hash=record.secret_hash,
                expires_at=_as_utc(record.expires_at),
                created_at=_as_utc(record.created_at),
                device_info=record.device_info,
            )
        )
        await self._commit("store refresh token")

    async def get(self, record_id: str) -> RefreshTokenRecord | None:
        try:
            result = await self._db.execute(
                select(RefreshToken).where(RefreshToken.id == record_id)
            )
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to load refresh token", e) from e

        row = result.scalar_one_or_none()
        return _to_record(row) if row else None

    async def latest_for_user(self, user_id: int) -> RefreshTokenRecord | None:
        try:
            result = await self._db.execute(
                select(RefreshToken)
                .where(RefreshToken.user_id == user_id)
                .order_by(RefreshToken.created_at.desc())
                .limit(1)
            )
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to load refresh token", e) from e

        row = result.scalar_one_or_none()
        return _to_record(row) if row else None

    async def delete(self, record_id: str) -> None:
        try:
            await self._db.execute(
                delete(RefreshToken)
                .where(RefreshToken.id == record_id)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            await self._db.rollback()
            raise DatabaseError("Failed to delete refresh token", e) from e
        await self._commit("delete refresh token")

    async def consume(self, record_id: str, now: datetime) -> bool:
        try:
            result = await self._db.execute(
                delete(RefreshToken)
                .where(
                    RefreshToken.id == record_id,
                    RefreshToken.expires_at > _as_utc(now),
                )
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            await self._db.rollback()
            raise DatabaseError("Failed to consume refresh token", e) from e
        await self._commit("consume refresh token")
        return result.rowcount == 1

    async def delete_for_user(self, user_id: int) -> int:
        try:
            result = await self._db.execute(
                delete(RefreshToken)
                .where(RefreshToken.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            await self._db.rollback()
            raise DatabaseError("Failed to delete refresh tokens", e) from e
        await self._commit("delete refresh tokens")
        return result.rowcount
