"""Review API routes, standalone and nested under tours."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from litestar import Controller, delete, get, patch, post

from src.api.schemas import (
    ReviewCreateRequest,
    ReviewResponse,
    ReviewUpdateRequest,
    dump,
    dump_many,
    many,
    parse_id,
    single,
)
from src.api.security import auth_guard, restrict_to
from src.api.services.review import ReviewService
from src.core.enums import REVIEW_EDITORS, REVIEWERS
from src.core.exceptions import ValidationFailure
from src.db.models import User


async def _create(
    user: User,
    tour_id: UUID | None,
    data: ReviewCreateRequest,
    review_service: ReviewService,
) -> dict[str, Any]:
    if tour_id is None:
        raise ValidationFailure("Review must belong to a tour.")
    review = await review_service.create_review(
        user, tour_id=tour_id, review=data.review, rating=data.rating
    )
    return single(dump(ReviewResponse, review))


class ReviewController(Controller):
    """Reviews across all tours."""

    path = "/api/v1/reviews"
    tags: Sequence[str] | None = ["Reviews"]
    guards = [auth_guard]

    @get("")
    async def list_reviews(
        self,
        review_service: ReviewService,
        tour: str | None = None,
    ) -> dict[str, Any]:
        """List reviews, optionally for one tour."""
        tour_id = parse_id(tour, "tour") if tour else None
        return many(dump_many(ReviewResponse, await review_service.list_reviews(tour_id=tour_id)))

    @post("", guards=[restrict_to(REVIEWERS)])
    async def create_review(
        self,
        data: ReviewCreateRequest,
        current_user: User,
        review_service: ReviewService,
    ) -> dict[str, Any]:
        """Review the tour named in the body as the logged-in user."""
        return await _create(current_user, data.tour, data, review_service)

    @get("/{review_id:str}")
    async def get_review(self, review_id: str, review_service: ReviewService) -> dict[str, Any]:
        review = await review_service.get_review(parse_id(review_id))
        return single(dump(ReviewResponse, review))

    @patch("/{review_id:str}", guards=[restrict_to(REVIEW_EDITORS)])
    async def update_review(
        self,
        review_id: str,
        data: ReviewUpdateRequest,
        current_user: User,
        review_service: ReviewService,
    ) -> dict[str, Any]:
        """Edit a review (authors edit their own, admins any)."""
        review = await review_service.update_review(
            current_user, parse_id(review_id), **data.sent_fields()
        )
        return single(dump(ReviewResponse, review))

    @delete("/{review_id:str}", guards=[restrict_to(REVIEW_EDITORS)])
    async def delete_review(
        self,
        review_id: str,
        current_user: User,
        review_service: ReviewService,
    ) -> None:
        await review_service.delete_review(current_user, parse_id(review_id))


class TourReviewController(Controller):
    """Reviews of the tour named in the path."""

    path = "/api/v1/tours/{tour_id:str}/reviews"
    tags: Sequence[str] | None = ["Reviews"]
    guards = [auth_guard]

    @get("")
    async def list_tour_reviews(self, tour_id: str, review_service: ReviewService) -> dict[str, Any]:
        """List the reviews of one tour."""
        reviews = await review_service.list_reviews(tour_id=parse_id(tour_id))
        return many(dump_many(ReviewResponse, reviews))

    @post("", guards=[restrict_to(REVIEWERS)])
    async def create_tour_review(
        self,
        tour_id: str,
        data: ReviewCreateRequest,
        current_user: User,
        review_service: ReviewService,
    ) -> dict[str, Any]:
        """Review the tour in the URL as the logged-in user."""
        return await _create(current_user, parse_id(tour_id), data, review_service)
