"""Tour catalogue service."""

from __future__ import annotations

import logging
import re
import unicodedata
from collections import defaultdict
from datetime import date, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from src.api.services.geo import central_angle, distance_meters, parse_latlng, point_coordinates
from src.core.enums import DistanceUnit
from src.core.exceptions import NotFoundError, ValidationFailure
from src.db.repositories import TourRepository

if TYPE_CHECKING:
    from collections.abc import Sequence

    from src.db.models import Tour, User
    from src.db.query import QueryParams

logger = logging.getLogger(__name__)

NO_DOCUMENT_MESSAGE = "No document found with that ID"
MONTHLY_PLAN_LIMIT = 12


def slugify(text: str) -> str:
    """Generate a URL slug from a tour name.

    Examples:
        >>> slugify("The Forest Hiker")
        'the-forest-hiker'
        >>> slugify("Café & Crème")
        'cafe-creme'
    """
    normalized = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower())
    return slug.strip("-")


class TourService:
    """Tour catalogue: CRUD, aggregates and geospatial lookups.

    The slug is derived from the name on every create and rename.
    """

    def __init__(self, repository: TourRepository) -> None:
        """Initialize tour service.

        Args:
            repository: Tour repository.
        """
        self._repo = repository

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def list_tours(self, params: QueryParams) -> Sequence[Tour]:
        return await self._repo.list_tours(params)

    async def get_tour(self, tour_id: UUID, *, with_reviews: bool = False) -> Tour:
        """Get a tour by ID.

        Raises:
            NotFoundError: If the tour does not exist or is secret.
        """
        tour = await self._repo.get_tour(tour_id, with_reviews=with_reviews)
        if tour is None:
            raise NotFoundError(NO_DOCUMENT_MESSAGE)
        return tour

    async def get_tour_by_slug(self, slug: str) -> Tour:
        """Get a tour and its reviews by slug.

        Raises:
            NotFoundError: If no visible tour has this slug.
        """
        tour = await self._repo.get_tour_by_slug(slug)
        if tour is None:
            raise NotFoundError("There is no tour with that name.")
        return tour

    async def list_all(self) -> Sequence[Tour]:
        return await self._repo.list_all()

    async def create_tour(self, fields: dict[str, Any], guide_ids: list[UUID]) -> Tour:
        """Create a tour.

        Args:
            fields: Column values keyed by attribute name.
            guide_ids: IDs of the users guiding the tour.

        Returns:
            Created Tour.

        Raises:
            ValidationFailure: If a guide ID is unknown or the discount
                is not below the price.
        """
        fields = self._prepare(fields)
        _check_discount(fields.get("price_discount"), fields["price"])
        guides = await self._load_guides(guide_ids)
        tour = await self._repo.create_tour(
            id=uuid4(), slug=slugify(fields["name"]), guides=guides, **fields
        )
        logger.info(f"Tour created: {tour.id} ({tour.slug})")
        return tour

    async def update_tour(
        self,
        tour_id: UUID,
        fields: dict[str, Any],
        guide_ids: list[UUID] | None = None,
    ) -> Tour:
        """Update a tour.

        Args:
            tour_id: Tour ID.
            fields: Changed column values keyed by attribute name.
            guide_ids: Replacement guide IDs (optional).

        Returns:
            Updated Tour.

        Raises:
            NotFoundError: If the tour does not exist.
            ValidationFailure: If a guide ID is unknown or the discount
                is not below the price.
        """
        tour = await self.get_tour(tour_id)
        fields = self._prepare(fields)
        if "name" in fields:
            fields["slug"] = slugify(fields["name"])
        if "price_discount" in fields or "price" in fields:
            _check_discount(
                fields.get("price_discount", tour.price_discount),
                fields.get("price", tour.price),
            )
        guides = await self._load_guides(guide_ids) if guide_ids is not None else None
        return await self._repo.update_tour(tour, guides=guides, **fields)

    async def delete_tour(self, tour_id: UUID) -> None:
        """Delete a tour.

        Raises:
            NotFoundError: If the tour does not exist.
        """
        tour = await self.get_tour(tour_id)
        await self._repo.delete_tour(tour)
        logger.info(f"Tour deleted: {tour_id}")

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    async def tour_stats(self) -> list[dict[str, Any]]:
        """Rating and price aggregates per difficulty for well-rated tours."""
        return await self._repo.stats_by_difficulty()

    async def monthly_plan(self, year: int) -> list[dict[str, Any]]:
        """Count tour starts per month of ``year``.

        Args:
            year: Calendar year.

        Returns:
            Up to twelve ``{month, numTourStarts, tours}`` entries, busiest
            month first.
        """
        starts: dict[int, list[str]] = defaultdict(list)
        for tour in await self._repo.list_all():
            for raw in tour.start_dates:
                start = _parse_date(raw)
                if start is not None and start.year == year:
                    starts[start.month].append(tour.name)

        plan = [
            {"month": month, "numTourStarts": len(names), "tours": names}
            for month, names in starts.items()
        ]
        plan.sort(key=lambda entry: (-entry["numTourStarts"], entry["month"]))
        return plan[:MONTHLY_PLAN_LIMIT]

    # -------------------------------------------------------------------------
    # Geospatial
    # -------------------------------------------------------------------------

    async def tours_within(
        self,
        distance: float,
        latlng: str,
        unit: DistanceUnit,
    ) -> list[Tour]:
        """Tours whose start location lies within ``distance`` of a point.

        Args:
            distance: Radius in ``unit``.
            latlng: Center as ``"lat,lng"``.
            unit: Distance unit.

        Returns:
            Matching tours.

        Raises:
            ValidationFailure: If the center is malformed or the distance negative.
        """
        center = parse_latlng(latlng)
        if distance < 0:
            raise ValidationFailure("Distance must not be negative.")
        radius = distance / unit.earth_radius

        tours = []
        for tour in await self._repo.list_all():
            start = point_coordinates(tour.start_location)
            if start is not None and central_angle(center, start) <= radius:
                tours.append(tour)
        return tours

    async def distances(self, latlng: str, unit: DistanceUnit) -> list[dict[str, Any]]:
        """Distance from a point to every tour's start location, nearest first.

        Args:
            latlng: Origin as ``"lat,lng"``.
            unit: Unit for the returned distances.

        Returns:
            ``{id, name, distance}`` entries.

        Raises:
            ValidationFailure: If the origin is malformed.
        """
        origin = parse_latlng(latlng)
        results = []
        for tour in await self._repo.list_all():
            start = point_coordinates(tour.start_location)
            if start is None:
                continue
            results.append(
                {
                    "id": tour.id,
                    "name": tour.name,
                    "distance": distance_meters(origin, start) * unit.per_meter,
                }
            )
        results.sort(key=lambda entry: entry["distance"])
        return results

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _load_guides(self, guide_ids: list[UUID]) -> Sequence[User]:
        guides = await self._repo.get_guides(guide_ids)
        if len(guides) != len(set(guide_ids)):
            raise ValidationFailure("One or more guides do not exist.")
        return guides

    @staticmethod
    def _prepare(fields: dict[str, Any]) -> dict[str, Any]:
        prepared = dict(fields)
        if prepared.get("start_dates") is not None:
            prepared["start_dates"] = [
                value.isoformat() if isinstance(value, (date, datetime)) else str(value)
                for value in prepared["start_dates"]
            ]
        if prepared.get("ratings_average") is not None:
            prepared["ratings_average"] = round(prepared["ratings_average"], 1)
        return prepared


def _check_discount(discount: float | None, price: float) -> None:
    if discount is not None and discount >= price:
        raise ValidationFailure(f"Discount price ({discount}) should be below regular price")


def _parse_date(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        logger.warning(f"Ignoring malformed tour start date: {value!r}")
        return None
