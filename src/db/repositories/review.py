"""Repository for review database operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import Review

if TYPE_CHECKING:
    from collections.abc import Sequence


class ReviewRepository:
    """Repository for review database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def create_review(
        self,
        *,
        id: UUID,
        tour_id: UUID,
        user_id: UUID,
        review: str,
        rating: int,
    ) -> Review:
        """Create a review.

        Args:
            id: Review ID.
            tour_id: Reviewed tour.
            user_id: Author.
            review: Review text.
            rating: Rating from 1 to 5.

        Returns:
            Created Review with its author loaded.
        """
        obj = Review(id=id, tour_id=tour_id, user_id=user_id, review=review, rating=rating)
        self._session.add(obj)
        await self._session.flush()
        await self._session.refresh(obj, ["user"])
        return obj

    async def get_review(self, review_id: UUID) -> Review | None:
        """Get review by ID.

        Args:
            review_id: Review ID.

        Returns:
            Review if found, None otherwise.
        """
        return await self._session.get(Review, review_id)

    async def review_exists(self, tour_id: UUID, user_id: UUID) -> bool:
        """Check whether a user already reviewed a tour.

        Args:
            tour_id: Tour ID.
            user_id: User ID.

        Returns:
            True if a review exists.
        """
        result = await self._session.execute(
            select(func.count())
            .select_from(Review)
            .where(Review.tour_id == tour_id, Review.user_id == user_id)
        )
        return (result.scalar() or 0) > 0

    async def list_reviews(
        self,
        *,
        tour_id: UUID | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[Review]:
        """List reviews, newest first.

        Args:
            tour_id: Restrict to one tour (optional).
            limit: Max results.
            offset: Results to skip.

        Returns:
            List of Review.
        """
        query = select(Review)
        if tour_id is not None:
            query = query.where(Review.tour_id == tour_id)
        result = await self._session.execute(
            query.order_by(Review.created_at.desc()).limit(limit).offset(offset)
        )
        return result.scalars().all()

    async def update_review(self, review: Review, /, **fields: Any) -> Review:
        """Apply field updates to a review.

        Args:
            review: Review to update.
            **fields: Column values; ``None`` values are skipped.

        Returns:
            Updated Review.
        """
        for name, value in fields.items():
            if value is not None:
                setattr(review, name, value)
        await self._session.flush()
        return review

    async def delete_review(self, review: Review) -> None:
        """Delete a review.

        Args:
            review: Review to delete.
        """
        await self._session.delete(review)
        await self._session.flush()

    async def rating_stats(self, tour_id: UUID) -> tuple[int, float | None]:
        """Count and average the ratings of a tour.

        Args:
            tour_id: Tour ID.

        Returns:
            Tuple of (review count, mean rating or None when there are no reviews).
        """
        result = await self._session.execute(
            select(func.count(Review.id), func.avg(Review.rating)).where(
                Review.tour_id == tour_id
            )
        )
        count, average = result.one()
        return int(count or 0), float(average) if average is not None else None
