"""Repository for booking database operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import Booking, Tour

if TYPE_CHECKING:
    from collections.abc import Sequence


class BookingRepository:
    """Repository for booking database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def create_booking(
        self,
        *,
        id: UUID,
        tour_id: UUID,
        user_id: UUID,
        price: float,
        paid: bool = True,
    ) -> Booking:
        """Create a booking.

        Args:
            id: Booking ID.
            tour_id: Booked tour.
            user_id: Booking user.
            price: Price paid.
            paid: Whether payment has been received.

        Returns:
            Created Booking with tour and user loaded.
        """
        booking = Booking(id=id, tour_id=tour_id, user_id=user_id, price=price, paid=paid)
        self._session.add(booking)
        await self._session.flush()
        await self._session.refresh(booking, ["tour", "user"])
        return booking

    async def get_booking(self, booking_id: UUID) -> Booking | None:
        """Get booking by ID.

        Args:
            booking_id: Booking ID.

        Returns:
            Booking if found, None otherwise.
        """
        return await self._session.get(Booking, booking_id)

    async def list_bookings(self, *, limit: int = 100, offset: int = 0) -> Sequence[Booking]:
        """List bookings, newest first.

        Args:
            limit: Max results.
            offset: Results to skip.

        Returns:
            List of Booking.
        """
        result = await self._session.execute(
            select(Booking).order_by(Booking.created_at.desc()).limit(limit).offset(offset)
        )
        return result.scalars().all()

    async def list_booked_tours(self, user_id: UUID) -> Sequence[Tour]:
        """List the distinct tours a user has booked.

        Args:
            user_id: User ID.

        Returns:
            List of Tour.
        """
        booked = select(Booking.tour_id).where(Booking.user_id == user_id)
        result = await self._session.execute(
            select(Tour).where(Tour.id.in_(booked)).order_by(Tour.name)
        )
        return result.scalars().all()

    async def update_booking(self, booking: Booking, **fields: Any) -> Booking:
        """Apply field updates to a booking.

        Args:
            booking: Booking to update.
            **fields: Column values; ``None`` values are skipped.

        Returns:
            Updated Booking.
        """
        for name, value in fields.items():
            if value is not None:
                setattr(booking, name, value)
        await self._session.flush()
        return booking

    async def delete_booking(self, booking: Booking) -> None:
        """Delete a booking.

        Args:
            booking: Booking to delete.
        """
        await self._session.delete(booking)
        await self._session.flush()
