"""Single-use password reset tokens.

The plaintext token only ever leaves the server in the reset e-mail; the
database holds its SHA-256 digest and an expiry.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from src.core.exceptions import TokenInvalidOrExpiredError

from .password import generate_token, hash_token

if TYPE_CHECKING:
    from src.db.models import User
    from src.db.repositories import UserRepository


class ResetTokenService:
    """Creates, resolves and clears password reset tokens."""

    def __init__(
        self,
        user_repo: UserRepository,
        lifetime: timedelta = timedelta(minutes=10),
    ) -> None:
        """Initialize reset token service.

        Args:
            user_repo: User repository.
            lifetime: How long a token stays valid.
        """
        self._user_repo = user_repo
        self._lifetime = lifetime

    async def create_reset_token(self, user: User) -> str:
        """Issue a new reset token, replacing any earlier one.

        Args:
            user: Token owner.

        Returns:
            Plaintext token to send to the user.
        """
        token = generate_token(32)
        expires_at = datetime.now(timezone.utc) + self._lifetime
        await self._user_repo.set_reset_token(user, hash_token(token), expires_at)
        return token

    async def consume_reset_token(self, token: str) -> User:
        """Resolve a presented token to its owner.

        The caller clears the token once the password has been replaced.

        Args:
            token: Plaintext token from the reset link.

        Returns:
            The user owning the token.

        Raises:
            TokenInvalidOrExpiredError: If no user holds an unexpired matching token.
        """
        user = await self._user_repo.get_user_by_reset_token(
            hash_token(token), datetime.now(timezone.utc)
        )
        if user is None:
            raise TokenInvalidOrExpiredError()
        return user

    async def clear_reset_token(self, user: User) -> None:
        """Discard a user's reset token.

        Args:
            user: Token owner.
        """
        await self._user_repo.clear_reset_token(user)
