"""Database repositories module."""

from .booking import BookingRepository
from .review import ReviewRepository
from .tour import TourRepository
from .user import UserRepository

__all__ = [
    "BookingRepository",
    "ReviewRepository",
    "TourRepository",
    "UserRepository",
]
