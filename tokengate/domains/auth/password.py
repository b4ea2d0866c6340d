# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credential hashing utilities using bcrypt.

The same hasher protects two kinds of secrets: user passwords and issued
refresh tokens. Both are stored only as salted bcrypt hashes.

bcrypt only reads the first 72 bytes of its input. Longer inputs (every
signed refresh token is longer) are first reduced to a base64 SHA-256
digest. The reduction depends only on the input, so hashing and
verification always agree.

Example:
    >>> hasher = PasswordHasher()
    >>> hashed = hasher.hash("my_password")
    >>> hasher.verify("my_password", hashed)
    True
"""

import base64
import hashlib
import logging
import secrets

import bcrypt

logger = logging.getLogger(__name__)

BCRYPT_MAX_INPUT_BYTES = 72


class HashFormatError(ValueError):
    """Raised when a stored hash is not a valid bcrypt hash."""

    pass


def _prepare(secret: str) -> bytes:
    """Encode a secret as bcrypt input, digesting it if too long."""
    raw = secret.encode("utf-8")
    if len(raw) <= BCRYPT_MAX_INPUT_BYTES:
        return raw
    return base64.b64encode(hashlib.sha256(raw).digest())


class PasswordHasher:
    """Secure secret hashing using bcrypt.

    Attributes:
        _rounds: bcrypt cost factor used for new hashes.

    Example:
        >>> hasher = PasswordHasher(rounds=10)
        >>> hashed = hasher.hash("secure_password")
        >>> hasher.verify("secure_password", hashed)
        True
        >>> hasher.verify("wrong_password", hashed)
        False
    """

    def __init__(self, rounds: int = 10) -> None:
        """Initialize the hasher.

        Args:
            rounds: bcrypt cost factor (4-31).
        """
        self._rounds = rounds
        self._dummy_hash: str | None = None

    @property
    def rounds(self) -> int:
        """bcrypt cost factor used for new hashes."""
        return self._rounds

    def hash(self, secret: str) -> str:
        """Hash a password or token.

        Args:
            secret: Plain text to hash.

        Returns:
            bcrypt hash string with salt and cost factor embedded.

        Raises:
            ValueError: If secret is empty.
        """
        if not secret:
            raise ValueError("Secret cannot be empty")

        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(_prepare(secret), salt).decode("utf-8")

    def verify(self, secret: str, hashed: str) -> bool:
        """Verify a password or token against a stored hash.

        Args:
            secret: Plain text candidate.
            hashed: Stored bcrypt hash.

        Returns:
            True if the candidate matches, False otherwise.

        Raises:
            HashFormatError: If the stored hash is malformed.
        """
        if not hashed:
            raise HashFormatError("Stored hash is empty")
        if not secret:
            return False

        try:
            return bcrypt.checkpw(_prepare(secret), hashed.encode("utf-8"))
        except ValueError as e:
            logger.error("Stored hash is malformed: %s", type(e).__name__)
            raise HashFormatError("Stored hash is not a valid bcrypt hash") from e

    def needs_rehash(self, hashed: str) -> bool:
        """Check if a hash was produced with a different cost factor.

        Args:
            hashed: Existing bcrypt hash ("$2b$<rounds>$<salt+digest>").

        Returns:
            True if the hash should be regenerated with the current rounds.

        Raises:
            HashFormatError: If the hash is malformed.
        """
        parts = hashed.split("$") if hashed else []
        if len(parts) != 4 or not parts[2].isdigit():
            raise HashFormatError("Stored hash is not a valid bcrypt hash")
        return int(parts[2]) != self._rounds

    def verify_dummy(self, secret: str) -> bool:
        """Spend one verification on a hash no real secret matches.

        Used when there is no stored hash to check (unknown or inactive
        account) so the response takes as long as a wrong password.

        Returns:
            Always False.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(secrets.token_urlsafe(32))
        self.verify(secret or "-", self._dummy_hash)
        return False
