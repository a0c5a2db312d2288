"""Booking service: checkout sessions and booking records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from src.api.services.payments import StripeClient
from src.core.exceptions import NotFoundError
from src.db.repositories import BookingRepository, TourRepository, UserRepository

if TYPE_CHECKING:
    from collections.abc import Sequence

    from src.db.models import Booking, Tour, User

logger = logging.getLogger(__name__)

NO_DOCUMENT_MESSAGE = "No document found with that ID"


class BookingService:
    """Creates checkout sessions at the payment provider and manages bookings."""

    def __init__(
        self,
        repository: BookingRepository,
        tour_repository: TourRepository,
        user_repository: UserRepository,
        payments: StripeClient,
    ) -> None:
        """Initialize booking service.

        Args:
            repository: Booking repository.
            tour_repository: Tour repository.
            user_repository: User repository.
            payments: Payment provider client.
        """
        self._repo = repository
        self._tours = tour_repository
        self._users = user_repository
        self._payments = payments

    async def create_checkout_session(
        self,
        user: User,
        tour_id: UUID,
        origin: str,
    ) -> dict[str, Any]:
        """Open a hosted card checkout for one seat on a tour.

        The success URL carries tour, user and price so the overview page
        can record the booking when the customer returns.

        Args:
            user: Paying user.
            tour_id: Tour to book.
            origin: Scheme and host of this site, without trailing slash.

        Returns:
            Checkout session object from the provider.

        Raises:
            NotFoundError: If the tour does not exist.
            PaymentProviderError: If the provider call fails.
        """
        tour = await self._get_tour(tour_id)
        session = await self._payments.create_checkout_session(
            success_url=f"{origin}/?tour={tour.id}&user={user.id}&price={tour.price}",
            cancel_url=f"{origin}/tour/{tour.slug}",
            customer_email=user.email,
            client_reference_id=str(tour.id),
            name=f"{tour.name} Tour",
            description=tour.summary,
            amount_cents=round(tour.price * 100),
            images=[f"{origin}/static/img/tours/{tour.image_cover}"],
        )
        logger.info(f"Checkout session {session.get('id')} for tour {tour.id} by {user.id}")
        return session

    async def complete_checkout(self, tour_id: UUID, user_id: UUID, price: float) -> Booking:
        """Record a booking after the provider redirected back.

        Args:
            tour_id: Booked tour.
            user_id: Booking user.
            price: Price paid.

        Returns:
            Created Booking.

        Raises:
            NotFoundError: If the tour or user does not exist.
        """
        return await self.create_booking(tour_id=tour_id, user_id=user_id, price=price)

    async def list_bookings(self) -> Sequence[Booking]:
        return await self._repo.list_bookings()

    async def list_booked_tours(self, user: User) -> Sequence[Tour]:
        return await self._repo.list_booked_tours(user.id)

    async def get_booking(self, booking_id: UUID) -> Booking:
        """Get a booking by ID.

        Raises:
            NotFoundError: If the booking does not exist.
        """
        booking = await self._repo.get_booking(booking_id)
        if booking is None:
            raise NotFoundError(NO_DOCUMENT_MESSAGE)
        return booking

    async def create_booking(
        self,
        *,
        tour_id: UUID,
        user_id: UUID,
        price: float,
        paid: bool = True,
    ) -> Booking:
        """Create a booking record.

        Raises:
            NotFoundError: If the tour or user does not exist.
        """
        await self._get_tour(tour_id)
        if await self._users.get_active_user(user_id) is None:
            raise NotFoundError(NO_DOCUMENT_MESSAGE)
        booking = await self._repo.create_booking(
            id=uuid4(), tour_id=tour_id, user_id=user_id, price=price, paid=paid
        )
        logger.info(f"Booking created: {booking.id} (tour {tour_id}, user {user_id})")
        return booking

    async def update_booking(self, booking_id: UUID, **fields: Any) -> Booking:
        """Update a booking's price or payment flag.

        Raises:
            NotFoundError: If the booking does not exist.
        """
        booking = await self.get_booking(booking_id)
        return await self._repo.update_booking(booking, **fields)

    async def delete_booking(self, booking_id: UUID) -> None:
        """Delete a booking.

        Raises:
            NotFoundError: If the booking does not exist.
        """
        booking = await self.get_booking(booking_id)
        await self._repo.delete_booking(booking)

    async def _get_tour(self, tour_id: UUID) -> Tour:
        tour = await self._tours.get_tour(tour_id)
        if tour is None:
            raise NotFoundError(NO_DOCUMENT_MESSAGE)
        return tour
