"""Authentication schemas using msgspec."""

from __future__ import annotations

from typing import Annotated

import msgspec

from .common import CamelStruct, normalize_email

PASSWORDS_DIFFER = "Passwords are not the same!"

Password = Annotated[str, msgspec.Meta(min_length=8, max_length=72)]
Name = Annotated[str, msgspec.Meta(min_length=1, max_length=100)]

# -----------------------------------------------------------------------------
# Request schemas
# -----------------------------------------------------------------------------


class PasswordPair(CamelStruct):
    """New password with its confirmation."""

    password: Password
    password_confirm: str

    def __post_init__(self) -> None:
        if self.password != self.password_confirm:
            raise ValueError(PASSWORDS_DIFFER)


class SignupRequest(PasswordPair):
    """User registration request.

    Unknown fields (including ``role``) are ignored.
    """

    name: Name
    email: str

    def __post_init__(self) -> None:
        super().__post_init__()
        self.email = normalize_email(self.email)


class LoginRequest(CamelStruct):
    """User login request; missing fields are reported by the service."""

    email: str | None = None
    password: str | None = None


class ForgotPasswordRequest(CamelStruct):
    """Password reset e-mail request."""

    email: str

    def __post_init__(self) -> None:
        self.email = normalize_email(self.email)


class ResetPasswordRequest(PasswordPair):
    """New password submitted with a reset token."""

    pass


class UpdatePasswordRequest(PasswordPair):
    """Logged-in password change."""

    password_current: str
