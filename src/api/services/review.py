"""Review service with explicit tour rating aggregation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from src.core.enums import Role
from src.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from src.db.repositories import ReviewRepository, TourRepository

if TYPE_CHECKING:
    from collections.abc import Sequence

    from src.db.models import Review, User

logger = logging.getLogger(__name__)

NO_DOCUMENT_MESSAGE = "No document found with that ID"
DEFAULT_RATING = 4.5


class ReviewService:
    """Review CRUD.

    Every mutation ends with ``recompute_ratings`` for the affected tour,
    so a tour's ratings quantity and average always reflect its reviews.
    """

    def __init__(self, repository: ReviewRepository, tour_repository: TourRepository) -> None:
        """Initialize review service.

        Args:
            repository: Review repository.
            tour_repository: Tour repository, for existence checks and ratings.
        """
        self._repo = repository
        self._tours = tour_repository

    async def list_reviews(self, *, tour_id: UUID | None = None) -> Sequence[Review]:
        return await self._repo.list_reviews(tour_id=tour_id)

    async def get_review(self, review_id: UUID) -> Review:
        """Get a review by ID.

        Raises:
            NotFoundError: If the review does not exist.
        """
        review = await self._repo.get_review(review_id)
        if review is None:
            raise NotFoundError(NO_DOCUMENT_MESSAGE)
        return review

    async def create_review(
        self,
        user: User,
        *,
        tour_id: UUID,
        review: str,
        rating: int,
    ) -> Review:
        """Post a review of a tour as ``user``.

        Args:
            user: Author.
            tour_id: Reviewed tour.
            review: Review text.
            rating: Rating from 1 to 5.

        Returns:
            Created Review.

        Raises:
            NotFoundError: If the tour does not exist.
            ConflictError: If the user already reviewed the tour.
        """
        if await self._tours.get_tour(tour_id) is None:
            raise NotFoundError(NO_DOCUMENT_MESSAGE)
        if await self._repo.review_exists(tour_id, user.id):
            raise ConflictError("You have already reviewed this tour.")

        created = await self._repo.create_review(
            id=uuid4(),
            tour_id=tour_id,
            user_id=user.id,
            review=review,
            rating=rating,
        )
        await self.recompute_ratings(tour_id)
        return created

    async def update_review(
        self,
        user: User,
        review_id: UUID,
        *,
        review: str | None = None,
        rating: int | None = None,
    ) -> Review:
        """Edit a review.

        Raises:
            NotFoundError: If the review does not exist.
            ForbiddenError: If a non-admin edits someone else's review.
        """
        existing = await self.get_review(review_id)
        _check_owner(user, existing)
        updated = await self._repo.update_review(existing, review=review, rating=rating)
        await self.recompute_ratings(existing.tour_id)
        return updated

    async def delete_review(self, user: User, review_id: UUID) -> None:
        """Delete a review.

        Raises:
            NotFoundError: If the review does not exist.
            ForbiddenError: If a non-admin deletes someone else's review.
        """
        existing = await self.get_review(review_id)
        _check_owner(user, existing)
        tour_id = existing.tour_id
        await self._repo.delete_review(existing)
        await self.recompute_ratings(tour_id)

    async def recompute_ratings(self, tour_id: UUID) -> None:
        """Store a tour's review count and average rating.

        A tour without reviews falls back to zero reviews and the default
        average.

        Args:
            tour_id: Tour ID.
        """
        quantity, average = await self._repo.rating_stats(tour_id)
        if quantity == 0 or average is None:
            quantity, average = 0, DEFAULT_RATING
        await self._tours.set_ratings(tour_id, quantity=quantity, average=round(average, 1))
        logger.debug(f"Ratings for tour {tour_id}: {quantity} reviews, average {average}")


def _check_owner(user: User, review: Review) -> None:
    if user.role_enum is not Role.ADMIN and review.user_id != user.id:
        raise ForbiddenError()
