"""User account model."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.core.enums import Role
from src.db.models.base import Base, as_utc, utcnow


class User(Base):
    """User account model.

    Stores credentials, role and password-reset state.
    Supports soft deletion via the active flag.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    photo: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="default.jpg",
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=Role.USER.value,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    password_changed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Password reset state (SHA-256 digest of the e-mailed secret)
    password_reset_token: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    password_reset_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Account status
    active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (Index("ix_users_email_active", "email", "active"),)

    @property
    def role_enum(self) -> Role:
        return Role(self.role)

    def changed_password_after(self, issued_at: int) -> bool:
        """Check whether the password changed after a token was issued.

        Args:
            issued_at: Token ``iat`` claim (seconds since epoch).

        Returns:
            True if the token predates the latest password change.
        """
        if self.password_changed_at is None:
            return False
        changed_timestamp = int(as_utc(self.password_changed_at).timestamp())
        return issued_at < changed_timestamp

    def __repr__(self) -> str:
        return f"<User {self.id} email={self.email} role={self.role}>"
