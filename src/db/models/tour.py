"""Tour model and the tour/guide association table."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.enums import Difficulty
from src.db.models.base import Base, utcnow

if TYPE_CHECKING:
    from .review import Review
    from .user import User


tour_guides = Table(
    "tour_guides",
    Base.metadata,
    Column("tour_id", Uuid, ForeignKey("tours.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Tour(Base):
    """Bookable tour.

    Locations are stored as GeoJSON points ``{"type": "Point",
    "coordinates": [lng, lat], ...}``. Start dates are ISO-8601 strings.
    Secret tours never leave the repository.
    """

    __tablename__ = "tours"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
    )
    name: Mapped[str] = mapped_column(
        String(40),
        unique=True,
        nullable=False,
    )
    slug: Mapped[str] = mapped_column(
        String(60),
        nullable=False,
        index=True,
    )
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    max_group_size: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=Difficulty.MEDIUM.value,
    )
    ratings_average: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=4.5,
    )
    ratings_quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    price: Mapped[float] = mapped_column(Float, nullable=False)
    price_discount: Mapped[float | None] = mapped_column(Float, nullable=True)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_cover: Mapped[str] = mapped_column(String(255), nullable=False)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    start_dates: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    secret_tour: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    start_location: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    locations: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # Relationships
    guides: Mapped[list[User]] = relationship(
        "User",
        secondary=tour_guides,
        lazy="selectin",
    )
    reviews: Mapped[list[Review]] = relationship(
        "Review",
        back_populates="tour",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (Index("ix_tours_price_ratings", "price", "ratings_average"),)

    @property
    def duration_weeks(self) -> float:
        return self.duration / 7

    def __repr__(self) -> str:
        return f"<Tour {self.id} slug={self.slug}>"
