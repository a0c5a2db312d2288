"""User profile and administration service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from uuid import UUID

from src.api.services.auth import duplicate_email_message
from src.core.exceptions import ConflictError, NotFoundError
from src.db.repositories import UserRepository

if TYPE_CHECKING:
    from collections.abc import Sequence

    from src.db.models import User

logger = logging.getLogger(__name__)

NO_DOCUMENT_MESSAGE = "No document found with that ID"


class UserService:
    """User profile management service.

    Handles self-service profile updates and deactivation, plus admin
    lookups and edits. Passwords are never changed here.
    """

    def __init__(self, repository: UserRepository) -> None:
        """Initialize user service.

        Args:
            repository: User repository.
        """
        self._repo = repository

    async def update_me(
        self,
        user: User,
        *,
        name: str | None = None,
        email: str | None = None,
        photo: str | None = None,
    ) -> User:
        """Update the caller's own name, email and photo.

        Args:
            user: Authenticated user.
            name: New name (optional).
            email: New email (optional).
            photo: Filename of a freshly stored profile photo (optional).

        Returns:
            Updated User.

        Raises:
            ConflictError: If the new email belongs to another account.
        """
        if email and await self._repo.email_exists(email, exclude_user_id=user.id):
            raise ConflictError(duplicate_email_message(email))
        return await self._repo.update_user(user, name=name, email=email, photo=photo)

    async def deactivate(self, user: User) -> None:
        """Soft delete the caller's account.

        Args:
            user: Authenticated user.
        """
        await self._repo.soft_delete_user(user)
        logger.info(f"User deactivated: {user.id}")

    async def list_users(self, *, limit: int = 100, offset: int = 0) -> Sequence[User]:
        """List active users."""
        return await self._repo.list_users(limit=limit, offset=offset)

    async def get_user(self, user_id: UUID) -> User:
        """Get a user by ID.

        Args:
            user_id: User ID.

        Returns:
            The User.

        Raises:
            NotFoundError: If no user has this ID.
        """
        user = await self._repo.get_user(user_id)
        if user is None:
            raise NotFoundError(NO_DOCUMENT_MESSAGE)
        return user

    async def update_user(self, user_id: UUID, **fields: Any) -> User:
        """Admin update of profile fields and role.

        Args:
            user_id: User ID.
            **fields: Attribute values; ``None`` values are skipped.

        Returns:
            Updated User.

        Raises:
            NotFoundError: If no user has this ID.
            ConflictError: If the new email belongs to another account.
        """
        user = await self.get_user(user_id)
        email = fields.get("email")
        if email and await self._repo.email_exists(email, exclude_user_id=user.id):
            raise ConflictError(duplicate_email_message(email))
        return await self._repo.update_user(user, **fields)

    async def delete_user(self, user_id: UUID) -> None:
        """Permanently delete a user.

        Args:
            user_id: User ID.

        Raises:
            NotFoundError: If no user has this ID.
        """
        user = await self.get_user(user_id)
        await self._repo.delete_user(user)
        logger.info(f"User deleted: {user_id}")
