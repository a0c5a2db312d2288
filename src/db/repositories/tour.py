"""Repository for tour-related database operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.db.models import Tour, User
from src.db.query import QueryFeatures, QueryParams

if TYPE_CHECKING:
    from collections.abc import Sequence

# Public (camelCase) name -> column, for filtering and sorting
TOUR_COLUMNS = {
    "name": Tour.name,
    "slug": Tour.slug,
    "duration": Tour.duration,
    "maxGroupSize": Tour.max_group_size,
    "difficulty": Tour.difficulty,
    "ratingsAverage": Tour.ratings_average,
    "ratingsQuantity": Tour.ratings_quantity,
    "price": Tour.price,
    "priceDiscount": Tour.price_discount,
    "createdAt": Tour.created_at,
}

STATS_MIN_RATING = 4.5


class TourRepository:
    """Repository for tour database operations.

    Secret tours are excluded from every read.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session
        self._features = QueryFeatures(TOUR_COLUMNS)

    @staticmethod
    def _visible() -> Select[tuple[Tour]]:
        return select(Tour).where(Tour.secret_tour == False)  # noqa: E712

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_tours(self, params: QueryParams) -> Sequence[Tour]:
        """List visible tours with query-string filtering, sorting and paging.

        Args:
            params: Parsed query parameters.

        Returns:
            List of Tour.
        """
        stmt = self._features.apply(self._visible(), params)
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def get_tour(self, tour_id: UUID, *, with_reviews: bool = False) -> Tour | None:
        """Get a visible tour by ID.

        Args:
            tour_id: Tour ID.
            with_reviews: Also load the tour's reviews.

        Returns:
            Tour if found, None otherwise.
        """
        stmt = self._visible().where(Tour.id == tour_id)
        if with_reviews:
            stmt = stmt.options(selectinload(Tour.reviews))
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_tour_by_slug(self, slug: str) -> Tour | None:
        """Get a visible tour and its reviews by slug.

        Args:
            slug: URL slug.

        Returns:
            Tour if found, None otherwise.
        """
        result = await self._session.execute(
            self._visible().where(Tour.slug == slug).options(selectinload(Tour.reviews))
        )
        return result.scalars().first()

    async def list_all(self) -> Sequence[Tour]:
        """List every visible tour, unpaginated.

        Returns:
            List of Tour.
        """
        result = await self._session.execute(self._visible().order_by(Tour.created_at.desc()))
        return result.scalars().all()

    async def stats_by_difficulty(self) -> list[dict[str, Any]]:
        """Aggregate well-rated tours per difficulty, cheapest group first.

        Returns:
            One dict per difficulty with count, rating and price aggregates.
        """
        avg_price = func.avg(Tour.price)
        result = await self._session.execute(
            select(
                Tour.difficulty,
                func.count(Tour.id),
                func.sum(Tour.ratings_quantity),
                func.avg(Tour.ratings_average),
                avg_price,
                func.min(Tour.price),
                func.max(Tour.price),
            )
            .where(
                Tour.secret_tour == False,  # noqa: E712
                Tour.ratings_average >= STATS_MIN_RATING,
            )
            .group_by(Tour.difficulty)
            .order_by(avg_price)
        )
        return [
            {
                "difficulty": difficulty.upper(),
                "numTours": num_tours,
                "numRatings": int(num_ratings or 0),
                "avgRating": round(float(avg_rating), 2),
                "avgPrice": round(float(avg), 2),
                "minPrice": min_price,
                "maxPrice": max_price,
            }
            for difficulty, num_tours, num_ratings, avg_rating, avg, min_price, max_price in result
        ]

    async def get_guides(self, user_ids: Sequence[UUID]) -> Sequence[User]:
        """Load active users to attach as tour guides.

        Args:
            user_ids: Requested guide IDs.

        Returns:
            Matching active users.
        """
        if not user_ids:
            return []
        result = await self._session.execute(
            select(User).where(User.id.in_(user_ids), User.active == True)  # noqa: E712
        )
        return result.scalars().all()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create_tour(self, *, id: UUID, guides: Sequence[User] = (), **fields: Any) -> Tour:
        """Create a tour.

        Args:
            id: Tour ID.
            guides: Users guiding the tour.
            **fields: Column values keyed by attribute name.

        Returns:
            Created Tour instance.
        """
        tour = Tour(id=id, **fields)
        tour.guides = list(guides)
        self._session.add(tour)
        await self._session.flush()
        return tour

    async def update_tour(
        self,
        tour: Tour,
        *,
        guides: Sequence[User] | None = None,
        **fields: Any,
    ) -> Tour:
        """Apply field updates to a tour.

        Args:
            tour: Tour to update.
            guides: Replacement guide list (optional).
            **fields: Column values keyed by attribute name.

        Returns:
            Updated Tour.
        """
        for name, value in fields.items():
            setattr(tour, name, value)
        if guides is not None:
            tour.guides = list(guides)
        await self._session.flush()
        return tour

    async def set_ratings(self, tour_id: UUID, *, quantity: int, average: float) -> None:
        """Store aggregated rating values on a tour.

        Args:
            tour_id: Tour ID.
            quantity: Number of reviews.
            average: Mean rating.
        """
        tour = await self._session.get(Tour, tour_id)
        if tour is None:
            return
        tour.ratings_quantity = quantity
        tour.ratings_average = average
        await self._session.flush()

    async def delete_tour(self, tour: Tour) -> None:
        """Delete a tour; its reviews and bookings cascade in the database.

        Args:
            tour: Tour to delete.
        """
        await self._session.delete(tour)
        await self._session.flush()
