"""Review model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.models.base import Base, utcnow

if TYPE_CHECKING:
    from .tour import Tour
    from .user import User


class Review(Base):
    """A user's review of a tour.

    Each (tour, user) pair may hold at most one review.
    """

    __tablename__ = "reviews"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
    )
    review: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    tour_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("tours.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # Relationships
    tour: Mapped[Tour] = relationship(
        "Tour",
        back_populates="reviews",
        lazy="raise",
    )
    user: Mapped[User] = relationship(
        "User",
        lazy="selectin",
    )

    __table_args__ = (UniqueConstraint("tour_id", "user_id", name="uq_reviews_tour_user"),)

    def __repr__(self) -> str:
        return f"<Review {self.id} tour={self.tour_id} rating={self.rating}>"
