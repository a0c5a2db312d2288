"""Authentication service: signup, login and password management."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING
from uuid import uuid4

from src.api.security import JWTService, PasswordService, ResetTokenService
from src.api.services.email import EmailDeliveryError, EmailService
from src.core.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    UpstreamFailure,
    ValidationFailure,
)
from src.db.repositories import UserRepository

if TYPE_CHECKING:
    from src.db.models import User

logger = logging.getLogger(__name__)

# Tokens issued in the same second as a password change must still be fresh
PASSWORD_CHANGE_MARGIN = timedelta(seconds=1)


def duplicate_email_message(email: str) -> str:
    return f"Duplicate field value: {email}. Please use another value!"


class AuthService:
    """Authentication service.

    Owns every operation that hashes a password or issues a bearer token.
    """

    def __init__(
        self,
        repository: UserRepository,
        jwt_service: JWTService,
        password_service: PasswordService,
        reset_tokens: ResetTokenService,
        email_service: EmailService,
    ) -> None:
        """Initialize auth service.

        Args:
            repository: User repository.
            jwt_service: JWT token service.
            password_service: Password hashing service.
            reset_tokens: Password reset token service.
            email_service: Outbound e-mail.
        """
        self._repo = repository
        self._jwt = jwt_service
        self._password = password_service
        self._reset_tokens = reset_tokens
        self._email = email_service

    def issue_token(self, user: User) -> str:
        """Issue a bearer token for a user."""
        return self._jwt.issue(user.id)

    async def signup(
        self,
        *,
        name: str,
        email: str,
        password: str,
        welcome_url: str,
    ) -> tuple[User, str]:
        """Register a new user with the default role.

        A failed welcome e-mail is logged and does not undo the signup.

        Args:
            name: Display name.
            email: User email.
            password: Plain text password.
            welcome_url: Account page link for the welcome e-mail.

        Returns:
            Tuple of (User, bearer token).

        Raises:
            ConflictError: If the email is taken, including by a deactivated account.
        """
        if await self._repo.email_exists(email):
            raise ConflictError(duplicate_email_message(email))

        user = await self._repo.create_user(
            id=uuid4(),
            name=name,
            email=email,
            password_hash=await self._password.hash(password),
        )
        logger.info(f"User signed up: {user.id} ({user.email})")

        try:
            await self._email.send_welcome(user, welcome_url)
        except EmailDeliveryError as e:
            logger.warning(f"Welcome email to {user.email} failed: {e.message}")

        return user, self.issue_token(user)

    async def login(self, *, email: str | None, password: str | None) -> tuple[User, str]:
        """Authenticate with email and password.

        Args:
            email: User email.
            password: Plain text password.

        Returns:
            Tuple of (User, bearer token).

        Raises:
            ValidationFailure: If either credential is missing.
            InvalidCredentialsError: If the account is unknown, inactive,
                or the password is wrong.
        """
        if not email or not password:
            raise ValidationFailure("Please provide email and password")

        user = await self._repo.get_active_user_by_email(email)

        if user is None:
            # Prevent timing attacks
            await self._password.hash("dummy_password")
            raise InvalidCredentialsError()

        if not await self._password.verify(password, user.password_hash):
            raise InvalidCredentialsError()

        if self._password.needs_rehash(user.password_hash):
            rehashed = await self._password.hash(password)
            await self._repo.update_user(user, password_hash=rehashed)
            logger.info(f"Rehashed password for user {user.id}")

        logger.info(f"User logged in: {user.id}")
        return user, self.issue_token(user)

    async def forgot_password(self, email: str, reset_url: Callable[[str], str]) -> None:
        """Create a reset token and e-mail its link.

        If the e-mail cannot be delivered, the token is discarded again.

        Args:
            email: Account email.
            reset_url: Builds the reset link from the plaintext token.

        Raises:
            NotFoundError: If no active account has this email.
            UpstreamFailure: If the e-mail could not be sent.
        """
        user = await self._repo.get_active_user_by_email(email)
        if user is None:
            raise NotFoundError("There is no user with that email address.")

        token = await self._reset_tokens.create_reset_token(user)

        try:
            await self._email.send_password_reset(user, reset_url(token))
        except EmailDeliveryError as e:
            await self._reset_tokens.clear_reset_token(user)
            logger.error(f"Password reset email to {user.email} failed: {e.message}")
            raise UpstreamFailure(
                "There was an error sending the email. Try again later!"
            ) from e

        logger.info(f"Password reset requested for user {user.id}")

    async def reset_password(self, token: str, password: str) -> tuple[User, str]:
        """Replace a password using a reset token.

        Args:
            token: Plaintext reset token.
            password: New plain text password.

        Returns:
            Tuple of (User, bearer token).

        Raises:
            TokenInvalidOrExpiredError: If the token is unknown or expired.
        """
        user = await self._reset_tokens.consume_reset_token(token)
        await self._store_password(user, password)
        logger.info(f"Password reset for user {user.id}")
        return user, self.issue_token(user)

    async def update_password(self, user: User, *, current: str, new: str) -> str:
        """Change a logged-in user's password.

        Args:
            user: Authenticated user.
            current: Current plain text password.
            new: New plain text password.

        Returns:
            Fresh bearer token (earlier tokens stop working).

        Raises:
            InvalidCredentialsError: If ``current`` is wrong.
        """
        if not await self._password.verify(current, user.password_hash):
            raise InvalidCredentialsError("Your current password is wrong.")

        await self._store_password(user, new)
        logger.info(f"Password changed for user {user.id}")
        return self.issue_token(user)

    async def _store_password(self, user: User, password: str) -> None:
        changed_at = datetime.now(timezone.utc) - PASSWORD_CHANGE_MARGIN
        password_hash = await self._password.hash(password)
        await self._repo.set_password(user, password_hash, changed_at)
