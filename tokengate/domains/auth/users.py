# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Principal lookup used by the session manager.

Users are owned by an external collaborator. The session core only needs
to find a principal by email or by id, so that is all the UserDirectory
protocol exposes.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Principal:
    """An authenticated account as seen by the session core.

    Attributes:
        id: Numeric user identifier.
        email: Unique login email.
        password_hash: bcrypt hash of the user's password.
        branch_id: Tenant (branch) the user belongs to.
        first_name: Given name.
        last_name: Family name.
        is_active: Inactive users cannot log in or refresh.
    """

    id: int
    email: str
    password_hash: str
    branch_id: int | None = None
    first_name: str = ""
    last_name: str = ""
    is_active: bool = True


class UserDirectory(Protocol):
    """Read-only principal lookup."""

    async def get_by_email(self, email: str) -> Principal | None:
        """Return the principal with this email, or None."""
        ...

    async def get_by_id(self, user_id: int) -> Principal | None:
        """Return the principal with this id, or None."""
        ...


class InMemoryUserDirectory:
    """Dictionary-backed UserDirectory for tests and local runs.

    Email lookups are case-insensitive.

    Example:
        >>> users = InMemoryUserDirectory()
        >>> principal = users.add("a@x.com", hasher.hash("secret123"))
        >>> await users.get_by_email("A@x.com") == principal
        True
    """

    def __init__(self) -> None:
        self._by_id: dict[int, Principal] = {}
        self._next_id = 1

    def add(
        self,
        email: str,
        password_hash: str,
        branch_id: int | None = None,
        first_name: str = "",
        last_name: str = "",
        is_active: bool = True,
    ) -> Principal:
        """Register a principal and return it.

        Raises:
            ValueError: If the email is already registered.
        """
        if self._find_email(email) is not None:
            raise ValueError(f"Email already registered: {email}")

        principal = Principal(
            id=self._next_id,
            email=email,
            password_hash=password_hash,
            branch_id=branch_id,
            first_name=first_name,
            last_name=last_name,
            is_active=is_active,
        )
        self._by_id[principal.id] = principal
        self._next_id += 1
        return principal

    def replace(self, principal: Principal) -> None:
        """Overwrite a stored principal (e.g. to deactivate it)."""
        self._by_id[principal.id] = principal

    def remove(self, user_id: int) -> None:
        """Remove a principal if present."""
        self._by_id.pop(user_id, None)

    def _find_email(self, email: str) -> Principal | None:
        wanted = email.lower()
        for principal in self._by_id.values():
            if principal.email.lower() == wanted:
                return principal
        return None

    async def get_by_email(self, email: str) -> Principal | None:
        return self._find_email(email)

    async def get_by_id(self, user_id: int) -> Principal | None:
        return self._by_id.get(user_id)
