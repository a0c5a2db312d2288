"""API services module."""

from .auth import AuthService
from .booking import BookingService
from .email import EmailDeliveryError, EmailService
from .payments import PaymentProviderError, StripeClient
from .photos import PhotoService
from .review import ReviewService
from .tour import TourService
from .user import UserService

__all__ = [
    "AuthService",
    "BookingService",
    "EmailDeliveryError",
    "EmailService",
    "PaymentProviderError",
    "PhotoService",
    "ReviewService",
    "StripeClient",
    "TourService",
    "UserService",
]
