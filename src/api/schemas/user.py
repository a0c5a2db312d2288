"""User profile schemas using msgspec."""

from __future__ import annotations

from uuid import UUID

from msgspec import UNSET, UnsetType

from src.core.enums import Role

from .auth import Name
from .common import CamelStruct, normalize_email

# -----------------------------------------------------------------------------
# Request schemas
# -----------------------------------------------------------------------------


class UpdateMeRequest(CamelStruct):
    """Self-service profile update.

    Only name and email are applied (the photo arrives as a file part).
    Password fields are accepted so they can be rejected with a pointer
    to the password route.
    """

    name: Name | None = None
    email: str | None = None
    password: str | None = None
    password_confirm: str | None = None

    def __post_init__(self) -> None:
        if self.email is not None:
            self.email = normalize_email(self.email)

    @property
    def has_password_fields(self) -> bool:
        return self.password is not None or self.password_confirm is not None


class AccountForm(UpdateMeRequest):
    """Account page form post; both fields are required."""

    name: Name
    email: str


class AdminUpdateUserRequest(CamelStruct):
    """Admin edit of a user. Passwords cannot be changed here."""

    name: Name | UnsetType = UNSET
    email: str | UnsetType = UNSET
    photo: str | UnsetType = UNSET
    role: Role | UnsetType = UNSET

    def __post_init__(self) -> None:
        if self.email is not UNSET:
            self.email = normalize_email(self.email)


# -----------------------------------------------------------------------------
# Response schemas
# -----------------------------------------------------------------------------


class UserResponse(CamelStruct):
    """Public user representation."""

    id: UUID
    name: str
    email: str
    photo: str
    role: str


class UserSummary(CamelStruct):
    """User as embedded in reviews, bookings and tour guides."""

    id: UUID
    name: str
    photo: str


class GuideSummary(UserSummary):
    """Tour guide as embedded in tours."""

    email: str
    role: str
