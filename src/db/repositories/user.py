"""Repository for user-related database operations."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import User

if TYPE_CHECKING:
    from collections.abc import Sequence


class UserRepository:
    """Repository for user database operations.

    All methods are async and use the provided session for
    transaction management.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def create_user(
        self,
        *,
        id: UUID,
        name: str,
        email: str,
        password_hash: str,
        photo: str | None = None,
    ) -> User:
        """Create a new user with the default role.

        Args:
            id: User ID.
            name: Display name.
            email: User email (must be unique).
            password_hash: Hashed password.
            photo: Optional photo file name.

        Returns:
            Created User instance.
        """
        user = User(
            id=id,
            name=name,
            email=email.lower(),
            password_hash=password_hash,
        )
        if photo:
            user.photo = photo
        self._session.add(user)
        await self._session.flush()
        return user

    async def get_user(self, user_id: UUID) -> User | None:
        """Get user by ID, active or not.

        Args:
            user_id: User ID.

        Returns:
            User if found, None otherwise.
        """
        return await self._session.get(User, user_id)

    async def get_active_user(self, user_id: UUID) -> User | None:
        """Get active (non-deleted) user by ID.

        Args:
            user_id: User ID.

        Returns:
            User if found and active, None otherwise.
        """
        result = await self._session.execute(
            select(User).where(User.id == user_id, User.active == True)  # noqa: E712
        )
        return result.scalar_one_or_none()

    async def get_active_user_by_email(self, email: str) -> User | None:
        """Get active user by email.

        Args:
            email: User email.

        Returns:
            User if found and active, None otherwise.
        """
        result = await self._session.execute(
            select(User).where(
                User.email == email.lower(),
                User.active == True,  # noqa: E712
            )
        )
        return result.scalar_one_or_none()

    async def email_exists(self, email: str, exclude_user_id: UUID | None = None) -> bool:
        """Check if email is already registered, including deactivated accounts.

        Args:
            email: Email to check.
            exclude_user_id: Optional user ID to exclude from check.

        Returns:
            True if email exists, False otherwise.
        """
        query = select(func.count()).select_from(User).where(User.email == email.lower())
        if exclude_user_id:
            query = query.where(User.id != exclude_user_id)
        result = await self._session.execute(query)
        return (result.scalar() or 0) > 0

    async def list_users(self, *, limit: int = 100, offset: int = 0) -> Sequence[User]:
        """List active users, newest first.

        Args:
            limit: Max results.
            offset: Results to skip.

        Returns:
            List of User.
        """
        result = await self._session.execute(
            select(User)
            .where(User.active == True)  # noqa: E712
            .order_by(User.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return result.scalars().all()

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    async def update_user(self, user: User, **fields: Any) -> User:
        """Apply field updates to a user.

        ``None`` values are skipped; e-mail is lower-cased.

        Args:
            user: User to update.
            **fields: Column values keyed by attribute name.

        Returns:
            Updated User.
        """
        for name, value in fields.items():
            if value is None:
                continue
            if name == "email":
                value = value.lower()
            setattr(user, name, value)
        await self._session.flush()
        return user

    async def set_password(self, user: User, password_hash: str, changed_at: datetime) -> User:
        """Store a new password hash and clear any pending reset token.

        Args:
            user: User whose password changes.
            password_hash: New hash.
            changed_at: Value for ``password_changed_at``.

        Returns:
            Updated User.
        """
        user.password_hash = password_hash
        user.password_changed_at = changed_at
        user.password_reset_token = None
        user.password_reset_expires = None
        await self._session.flush()
        return user

    async def soft_delete_user(self, user: User) -> User:
        """Soft delete a user by clearing the active flag.

        Args:
            user: User to deactivate.

        Returns:
            Updated User.
        """
        user.active = False
        await self._session.flush()
        return user

    async def delete_user(self, user: User) -> None:
        """Permanently delete a user.

        Args:
            user: User to delete.
        """
        await self._session.delete(user)
        await self._session.flush()

    # -------------------------------------------------------------------------
    # Password reset tokens
    # -------------------------------------------------------------------------

    async def set_reset_token(self, user: User, token_hash: str, expires_at: datetime) -> None:
        """Store a reset-token digest, replacing any earlier one.

        Args:
            user: Token owner.
            token_hash: SHA-256 hex digest of the token.
            expires_at: Token expiration time.
        """
        user.password_reset_token = token_hash
        user.password_reset_expires = expires_at
        await self._session.flush()

    async def clear_reset_token(self, user: User) -> None:
        """Remove the reset-token digest and expiry.

        Args:
            user: Token owner.
        """
        user.password_reset_token = None
        user.password_reset_expires = None
        await self._session.flush()

    async def get_user_by_reset_token(self, token_hash: str, now: datetime) -> User | None:
        """Get the active user holding an unexpired reset token.

        Args:
            token_hash: SHA-256 hex digest of the presented token.
            now: Current time.

        Returns:
            User if the digest matches and has not expired, None otherwise.
        """
        result = await self._session.execute(
            select(User).where(
                User.password_reset_token == token_hash,
                User.password_reset_expires > now,
                User.active == True,  # noqa: E712
            )
        )
        return result.scalar_one_or_none()
