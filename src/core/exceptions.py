"""Operational error hierarchy.

Every error raised deliberately by the application derives from
``AppError``. The exception handlers in ``src.api.errors`` turn these into
``{"status": ..., "message": ...}`` responses; anything else is treated as
an unknown failure.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for anticipated, user-facing failures."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.headers = headers or {}
        if status_code is not None:
            self.status_code = status_code

    @property
    def status(self) -> str:
        """``fail`` for client errors, ``error`` for server errors."""
        return "fail" if 400 <= self.status_code < 500 else "error"

    @property
    def is_operational(self) -> bool:
        return True


class ValidationFailure(AppError):
    """Bad input shape or constraint violation."""

    status_code = 400


class TokenInvalidOrExpiredError(ValidationFailure):
    """Password reset token does not match or has expired."""

    def __init__(self, message: str = "Token is invalid or has expired") -> None:
        super().__init__(message)


class UnauthenticatedError(AppError):
    """Missing, invalid or stale credentials."""

    status_code = 401


class InvalidTokenError(UnauthenticatedError):
    """Bearer token signature is invalid or the token is malformed."""

    def __init__(self, message: str = "Invalid token. Please log in again!") -> None:
        super().__init__(message)


class TokenExpiredError(UnauthenticatedError):
    """Bearer token is past its expiry."""

    def __init__(self, message: str = "Your token has expired! Please log in again.") -> None:
        super().__init__(message)


class UserNoLongerExistsError(UnauthenticatedError):
    """Token subject is deleted or deactivated."""

    def __init__(
        self, message: str = "The user belonging to this token does no longer exist."
    ) -> None:
        super().__init__(message)


class PasswordChangedSinceError(UnauthenticatedError):
    """Token was issued before the latest password change."""

    def __init__(
        self, message: str = "User recently changed password! Please log in again."
    ) -> None:
        super().__init__(message)


class InvalidCredentialsError(UnauthenticatedError):
    """Email or password does not match."""

    def __init__(self, message: str = "Incorrect email or password") -> None:
        super().__init__(message)


class ForbiddenError(AppError):
    """Authenticated user lacks the required role."""

    status_code = 403

    def __init__(
        self, message: str = "You do not have permission to perform this action"
    ) -> None:
        super().__init__(message)


class NotFoundError(AppError):
    """Requested resource does not exist."""

    status_code = 404


class ConflictError(AppError):
    """Uniqueness violation."""

    status_code = 409


class UpstreamFailure(AppError):
    """Payment or mail provider failure."""

    status_code = 500


class RateLimitExceededError(AppError):
    """Too many requests from one client address."""

    status_code = 429

    def __init__(
        self,
        message: str = "Too many requests from this IP, please try again in an hour!",
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message, headers=headers)


class PayloadTooLargeError(AppError):
    """Request body exceeds the configured limit."""

    status_code = 413
