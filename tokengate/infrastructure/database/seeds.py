# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database seed data.

Creates the bootstrap account configured through BOOTSTRAP_EMAIL and
BOOTSTRAP_PASSWORD. Seeding is idempotent: an existing account with the
same email is left untouched.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.domains.auth.password import PasswordHasher
from tokengate.infrastructure.database.models.user import User

logger = logging.getLogger(__name__)


async def seed_user(
    session: AsyncSession,
    hasher: PasswordHasher,
    email: str,
    password: str,
    first_name: str = "",
    last_name: str = "",
    branch_id: int | None = None,
) -> User:
    """Create a user unless one with this email exists.

    Args:
        session: Database session. The caller commits.
        hasher: Hasher for the password.
        email: Login email.
        password: Plain text password.
        first_name: Given name.
        last_name: Family name.
        branch_id: Optional tenant attribute.

    Returns:
        The created or already existing user.
    """
    result = await session.execute(
        select(User).where(func.lower(User.email) == email.lower())
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        logger.info("Seed user already exists: %s", existing.id)
        return existing

    user = User(
        email=email,
        password_hash=hasher.hash(password),
        first_name=first_name,
        last_name=last_name,
        branch_id=branch_id,
        is_active=True,
    )
    session.add(user)
    await session.flush()
    logger.info("Seeded user: %s", user.id)
    return user
