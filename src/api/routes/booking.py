"""Booking API routes."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from litestar import Controller, Request, delete, get, patch, post

from src.api.routes.user import site_origin
from src.api.schemas import (
    BookingCreateRequest,
    BookingResponse,
    BookingUpdateRequest,
    dump,
    dump_many,
    many,
    parse_id,
    single,
)
from src.api.security import auth_guard, restrict_to
from src.api.services.booking import BookingService
from src.core.enums import TOUR_MANAGERS
from src.db.models import User

managers_only = [restrict_to(TOUR_MANAGERS)]


class BookingController(Controller):
    """Checkout for customers and booking administration for staff."""

    path = "/api/v1/bookings"
    tags: Sequence[str] | None = ["Bookings"]
    guards = [auth_guard]

    @get("/checkout-session/{tour_id:str}")
    async def get_checkout_session(
        self,
        tour_id: str,
        request: Request,
        current_user: User,
        booking_service: BookingService,
    ) -> dict[str, Any]:
        """Open a hosted checkout for the logged-in user."""
        session = await booking_service.create_checkout_session(
            current_user, parse_id(tour_id), site_origin(request)
        )
        return {"status": "success", "session": session}

    @get("", guards=managers_only)
    async def list_bookings(self, booking_service: BookingService) -> dict[str, Any]:
        return many(dump_many(BookingResponse, await booking_service.list_bookings()))

    @post("", guards=managers_only)
    async def create_booking(
        self,
        data: BookingCreateRequest,
        booking_service: BookingService,
    ) -> dict[str, Any]:
        booking = await booking_service.create_booking(
            tour_id=data.tour, user_id=data.user, price=data.price, paid=data.paid
        )
        return single(dump(BookingResponse, booking))

    @get("/{booking_id:str}", guards=managers_only)
    async def get_booking(self, booking_id: str, booking_service: BookingService) -> dict[str, Any]:
        return single(dump(BookingResponse, await booking_service.get_booking(parse_id(booking_id))))

    @patch("/{booking_id:str}", guards=managers_only)
    async def update_booking(
        self,
        booking_id: str,
        data: BookingUpdateRequest,
        booking_service: BookingService,
    ) -> dict[str, Any]:
        booking = await booking_service.update_booking(parse_id(booking_id), **data.sent_fields())
        return single(dump(BookingResponse, booking))

    @delete("/{booking_id:str}", guards=managers_only)
    async def delete_booking(self, booking_id: str, booking_service: BookingService) -> None:
        await booking_service.delete_booking(parse_id(booking_id))
