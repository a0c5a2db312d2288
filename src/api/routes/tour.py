"""Tour API routes."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from litestar import Controller, Request, delete, get, patch, post

from src.api.schemas import (
    TourCreateRequest,
    TourDetailResponse,
    TourDistance,
    TourResponse,
    TourUpdateRequest,
    dump,
    dump_many,
    many,
    parse_id,
    single,
)
from src.api.security import auth_guard, restrict_to
from src.api.services.tour import TourService
from src.core.enums import STAFF, TOUR_MANAGERS, DistanceUnit
from src.core.exceptions import ValidationFailure
from src.db.query import QueryParams, project

logger = logging.getLogger(__name__)

TOP_CHEAP_QUERY = {
    "limit": "5",
    "sort": "-ratingsAverage,price",
    "fields": "name,price,ratingsAverage,summary,difficulty",
}

managers_only = [auth_guard, restrict_to(TOUR_MANAGERS)]


def distance_unit(value: str) -> DistanceUnit:
    """Parse the unit path segment.

    Raises:
        ValidationFailure: For anything but ``mi`` or ``km``.
    """
    try:
        return DistanceUnit(value)
    except ValueError as e:
        raise ValidationFailure(f"Invalid unit: {value}. Please use mi or km.") from e


async def _list(tour_service: TourService, query: dict[str, str]) -> dict[str, Any]:
    params = QueryParams.parse(query)
    tours = await tour_service.list_tours(params)
    return many([project(doc, params.fields) for doc in dump_many(TourResponse, tours)])


class TourController(Controller):
    """Tour catalogue, aggregates and geospatial queries."""

    path = "/api/v1/tours"
    tags: Sequence[str] | None = ["Tours"]

    @get("")
    async def list_tours(self, request: Request, tour_service: TourService) -> dict[str, Any]:
        """List tours with filtering, sorting, field selection and pagination."""
        return await _list(tour_service, dict(request.query_params))

    @get("/top-5-cheap")
    async def top_five_cheap(self, request: Request, tour_service: TourService) -> dict[str, Any]:
        """Five best-rated tours, cheapest first among equals."""
        return await _list(tour_service, dict(request.query_params) | TOP_CHEAP_QUERY)

    @get("/tour-stats")
    async def tour_stats(self, tour_service: TourService) -> dict[str, Any]:
        """Per-difficulty aggregates for well-rated tours."""
        return {"status": "success", "data": {"stats": await tour_service.tour_stats()}}

    @get("/monthly-plan/{year:int}", guards=[auth_guard, restrict_to(STAFF)])
    async def monthly_plan(self, year: int, tour_service: TourService) -> dict[str, Any]:
        """Tour starts per month of a year, busiest month first."""
        return {"status": "success", "data": {"plan": await tour_service.monthly_plan(year)}}

    @get("/tours-within/{distance:float}/center/{latlng:str}/unit/{unit:str}")
    async def tours_within(
        self,
        distance: float,
        latlng: str,
        unit: str,
        tour_service: TourService,
    ) -> dict[str, Any]:
        """Tours starting within a radius of a point."""
        tours = await tour_service.tours_within(distance, latlng, distance_unit(unit))
        return many(dump_many(TourResponse, tours))

    @get("/distances/{latlng:str}/unit/{unit:str}")
    async def distances(self, latlng: str, unit: str, tour_service: TourService) -> dict[str, Any]:
        """Distance from a point to every tour's start, nearest first."""
        results = await tour_service.distances(latlng, distance_unit(unit))
        return single(dump_many(TourDistance, results))

    @get("/{tour_id:str}")
    async def get_tour(self, tour_id: str, tour_service: TourService) -> dict[str, Any]:
        """Get a tour with its reviews."""
        tour = await tour_service.get_tour(parse_id(tour_id), with_reviews=True)
        return single(dump(TourDetailResponse, tour))

    @post("", guards=managers_only)
    async def create_tour(self, data: TourCreateRequest, tour_service: TourService) -> dict[str, Any]:
        tour = await tour_service.create_tour(data.column_values(), data.guide_ids or [])
        return single(dump(TourResponse, tour))

    @patch("/{tour_id:str}", guards=managers_only)
    async def update_tour(
        self,
        tour_id: str,
        data: TourUpdateRequest,
        tour_service: TourService,
    ) -> dict[str, Any]:
        tour = await tour_service.update_tour(parse_id(tour_id), data.column_values(), data.guide_ids)
        return single(dump(TourResponse, tour))

    @delete("/{tour_id:str}", guards=managers_only)
    async def delete_tour(self, tour_id: str, tour_service: TourService) -> None:
        await tour_service.delete_tour(parse_id(tour_id))
