"""Tour schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

import msgspec
from msgspec import UNSET, UnsetType

from src.core.enums import Difficulty

from .common import CamelStruct
from .review import ReviewResponse
from .user import GuideSummary

NULLABLE_FIELDS = frozenset({"price_discount", "description", "start_location"})
JSON_FIELDS = frozenset({"start_location", "locations"})

TourName = Annotated[str, msgspec.Meta(min_length=10, max_length=40)]
Positive = Annotated[int, msgspec.Meta(gt=0)]
Price = Annotated[float, msgspec.Meta(gt=0)]
Discount = Annotated[float, msgspec.Meta(ge=0)]
Rating = Annotated[float, msgspec.Meta(ge=1, le=5)]
NonEmpty = Annotated[str, msgspec.Meta(min_length=1)]
Coordinates = Annotated[list[float], msgspec.Meta(min_length=2, max_length=2)]

# -----------------------------------------------------------------------------
# Request schemas
# -----------------------------------------------------------------------------


class GeoPoint(CamelStruct, kw_only=True, omit_defaults=True):
    """GeoJSON point with optional itinerary details."""

    type: Literal["Point"] = "Point"
    coordinates: Coordinates  # [lng, lat]
    address: str | None = None
    description: str | None = None
    day: int | None = None

    def __post_init__(self) -> None:
        lng, lat = self.coordinates
        if not (-180 <= lng <= 180 and -90 <= lat <= 90):
            raise ValueError("Coordinates must be [lng, lat] within valid ranges")


class TourFields(CamelStruct):
    """Fields shared by create and update; all optional here."""

    name: TourName | None | UnsetType = UNSET
    duration: Positive | None | UnsetType = UNSET
    max_group_size: Positive | None | UnsetType = UNSET
    difficulty: Difficulty | None | UnsetType = UNSET
    ratings_average: Rating | None | UnsetType = UNSET
    price: Price | None | UnsetType = UNSET
    price_discount: Discount | None | UnsetType = UNSET
    summary: NonEmpty | None | UnsetType = UNSET
    description: str | None | UnsetType = UNSET
    image_cover: NonEmpty | None | UnsetType = UNSET
    images: list[str] | None | UnsetType = UNSET
    start_dates: list[datetime] | None | UnsetType = UNSET
    secret_tour: bool | None | UnsetType = UNSET
    start_location: GeoPoint | None | UnsetType = UNSET
    locations: list[GeoPoint] | None | UnsetType = UNSET
    guides: list[UUID] | None | UnsetType = UNSET

    def column_values(self) -> dict[str, Any]:
        """Explicitly sent fields as model attribute values, guides excluded.

        Nulls are only kept for columns that may be cleared.
        """
        values = {
            name: value
            for name, value in self.sent_fields(exclude={"guides"}).items()
            if value is not None or name in NULLABLE_FIELDS
        }
        if "difficulty" in values:
            values["difficulty"] = Difficulty(values["difficulty"]).value
        for name in JSON_FIELDS & values.keys():
            values[name] = msgspec.to_builtins(values[name])
        return values

    @property
    def guide_ids(self) -> list[UUID] | None:
        """Guide IDs if the client sent a list, else None (leave unchanged)."""
        return self.guides if isinstance(self.guides, list) else None


class TourCreateRequest(TourFields, kw_only=True):
    """New tour."""

    name: TourName
    duration: Positive
    max_group_size: Positive
    difficulty: Difficulty
    price: Price
    summary: NonEmpty
    image_cover: NonEmpty

    def __post_init__(self) -> None:
        discount = self.price_discount
        if isinstance(discount, (int, float)) and discount >= self.price:
            raise ValueError(f"Discount price ({discount}) should be below regular price")


class TourUpdateRequest(TourFields):
    """Partial tour update; price/discount consistency is checked by the service."""

    pass


# -----------------------------------------------------------------------------
# Response schemas
# -----------------------------------------------------------------------------


class TourResponse(CamelStruct):
    """Tour as returned by list and write endpoints."""

    id: UUID
    name: str
    slug: str
    duration: int
    duration_weeks: float
    max_group_size: int
    difficulty: str
    ratings_average: float
    ratings_quantity: int
    price: float
    price_discount: float | None
    summary: str
    description: str | None
    image_cover: str
    images: list[str]
    start_dates: list[str]
    start_location: dict[str, Any] | None
    locations: list[dict[str, Any]]
    guides: list[GuideSummary]
    created_at: datetime


class TourDetailResponse(TourResponse):
    """Single tour with its reviews."""

    reviews: list[ReviewResponse]


class TourSummary(CamelStruct):
    """Tour as embedded in bookings."""

    id: UUID
    name: str
    slug: str
    price: float


class TourDistance(CamelStruct):
    id: UUID
    name: str
    distance: float
