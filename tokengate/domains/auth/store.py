# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Refresh token persistence.

Only a bcrypt hash of each issued refresh token is kept. A user may hold
several records at once (one per device/login). Records are removed on
rotation, on logout, and when found expired at use.

``consume`` is the rotation primitive: it deletes a record only if it is
still present and unexpired, and reports whether it did. Two concurrent
rotations of the same record therefore see exactly one True.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class RefreshTokenRecord:
    """Stored form of an issued refresh token.

    Attributes:
        id: Record id, also carried as the token's jti claim.
        user_id: Owning principal id.
        secret_hash: bcrypt hash of the refresh token string.
        expires_at: Absolute expiry (aware UTC).
        created_at: Creation time (aware UTC).
        device_info: Optional client description.
    """

    id: str
    user_id: int
    secret_hash: str
    expires_at: datetime
    created_at: datetime
    device_info: str | None = None

    def is_expired(self, now: datetime) -> bool:
        """Check if the record has expired at the given time."""
        return self.expires_at <= now


class RefreshTokenStore(Protocol):
    """Storage of refresh token records."""

    async def add(self, record: RefreshTokenRecord) -> None:
        """Persist a new record."""
        ...

    async def get(self, record_id: str) -> RefreshTokenRecord | None:
        """Return a record by id, or None."""
        ...

    async def latest_for_user(self, user_id: int) -> RefreshTokenRecord | None:
        """Return the most recently created record of a user, or None."""
        ...

    async def delete(self, record_id: str) -> None:
        """Delete a record if present."""
        ...

    async def consume(self, record_id: str, now: datetime) -> bool:
        """Delete a record if present and unexpired.

        Returns:
            True if this call deleted the record.
        """
        ...

    async def delete_for_user(self, user_id: int) -> int:
        """Delete all records of a user.

        Returns:
            Number of records deleted.
        """
        ...


class InMemoryRefreshTokenStore:
    """Dictionary-backed RefreshTokenStore.

    No operation awaits while touching the dictionary, so each one is
    atomic with respect to other tasks on the same event loop.
    """

    def __init__(self) -> None:
        self._records: dict[str, RefreshTokenRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def add(self, record: RefreshTokenRecord) -> None:
        if record.id in self._records:
            raise ValueError(f"Duplicate refresh token id: {record.id}")
        self._records[record.id] = record

    async def get(self, record_id: str) -> RefreshTokenRecord | None:
        return self._records.get(record_id)

    async def latest_for_user(self, user_id: int) -> RefreshTokenRecord | None:
        owned = [r for r in self._records.values() if r.user_id == user_id]
        if not owned:
            return None
        return max(owned, key=lambda r: r.created_at)

    async def delete(self, record_id: str) -> None:
        self._records.pop(record_id, None)

    async def consume(self, record_id: str, now: datetime) -> bool:
        record = self._records.get(record_id)
        if record is None or record.is_expired(now):
            return False
        del self._records[record_id]
        return True

    async def delete_for_user(self, user_id: int) -> int:
        doomed = [rid for rid, r in self._records.items() if r.user_id == user_id]
        for rid in doomed:
            del self._records[rid]
        return len(doomed)
