"""Database models module."""

from .base import Base
from .booking import Booking
from .review import Review
from .tour import Tour, tour_guides
from .user import User

__all__ = [
    "Base",
    "Booking",
    "Review",
    "Tour",
    "User",
    "tour_guides",
]
