"""Password hashing utilities using bcrypt.

Hashing and checking run in a worker thread so the event loop keeps
serving other requests while bcrypt works.
"""

from __future__ import annotations

import asyncio
import hashlib
import secrets

import bcrypt

from src.core.exceptions import ValidationFailure

# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


class PasswordService:
    """Password hashing and verification using bcrypt.

    Each hash carries its own random salt and cost factor, so hashes
    created with an older cost keep verifying after the cost changes.
    """

    def __init__(self, rounds: int = 12) -> None:
        """Initialize password hasher.

        Args:
            rounds: bcrypt work factor (log2 of iterations).
        """
        self._rounds = rounds

    async def hash(self, password: str) -> str:
        """Hash a password.

        Args:
            password: Plain text password.

        Returns:
            bcrypt hash string.

        Raises:
            ValidationFailure: If the password is longer than bcrypt accepts.
        """
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValidationFailure(f"Password cannot exceed {MAX_PASSWORD_BYTES} bytes")
        salt = bcrypt.gensalt(rounds=self._rounds)
        hashed = await asyncio.to_thread(bcrypt.hashpw, encoded, salt)
        return hashed.decode("utf-8")

    async def verify(self, password: str, hash: str) -> bool:
        """Verify a password against a hash.

        Args:
            password: Plain text password to verify.
            hash: bcrypt hash string.

        Returns:
            True if password matches, False otherwise (including malformed hashes).
        """
        try:
            return await asyncio.to_thread(
                bcrypt.checkpw, password.encode("utf-8"), hash.encode("utf-8")
            )
        except (ValueError, TypeError):
            return False

    def needs_rehash(self, hash: str) -> bool:
        """Check if a hash was created with a different cost factor.

        Args:
            hash: Existing hash to check.

        Returns:
            True if hash should be rehashed with current parameters.
        """
        parts = hash.split("$")
        try:
            return int(parts[2]) != self._rounds
        except (ValueError, IndexError):
            return True


def generate_token(nbytes: int = 32) -> str:
    """Generate a cryptographically secure random token.

    Args:
        nbytes: Number of random bytes (default 32 = 256 bits).

    Returns:
        Hex encoded token.
    """
    return secrets.token_hex(nbytes)


def hash_token(token: str) -> str:
    """Hash a token for storage.

    Uses SHA-256 for fast, non-reversible hashing of tokens.
    Unlike passwords, tokens are already high-entropy random strings.

    Args:
        token: Token to hash.

    Returns:
        Hex-encoded SHA-256 hash.
    """
    return hashlib.sha256(token.encode()).hexdigest()
