"""API routes module."""

from .booking import BookingController
from .health import HealthController
from .review import ReviewController, TourReviewController
from .tour import TourController
from .user import AuthController, UserController
from .views import AccountViewController, ViewController

__all__ = [
    "AccountViewController",
    "AuthController",
    "BookingController",
    "HealthController",
    "ReviewController",
    "TourController",
    "TourReviewController",
    "UserController",
    "ViewController",
]
