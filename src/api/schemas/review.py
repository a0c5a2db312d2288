"""Review schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

import msgspec
from msgspec import UNSET, UnsetType

from .common import CamelStruct
from .user import UserSummary

Rating = Annotated[int, msgspec.Meta(ge=1, le=5)]
ReviewText = Annotated[str, msgspec.Meta(min_length=1)]


class ReviewCreateRequest(CamelStruct):
    """New review. The tour may come from the URL instead of the body."""

    review: ReviewText
    rating: Rating
    tour: UUID | None = None


class ReviewUpdateRequest(CamelStruct):
    review: ReviewText | UnsetType = UNSET
    rating: Rating | UnsetType = UNSET


class ReviewResponse(CamelStruct):
    """Review with its author."""

    id: UUID
    review: str
    rating: int
    tour_id: UUID = msgspec.field(name="tour")
    user: UserSummary
    created_at: datetime
