"""API schemas module."""

from .auth import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    UpdatePasswordRequest,
)
from .booking import BookingCreateRequest, BookingResponse, BookingUpdateRequest
from .common import (
    CamelStruct,
    HealthResponse,
    dump,
    dump_many,
    many,
    normalize_email,
    parse_id,
    single,
)
from .review import ReviewCreateRequest, ReviewResponse, ReviewUpdateRequest
from .tour import (
    GeoPoint,
    TourCreateRequest,
    TourDetailResponse,
    TourDistance,
    TourResponse,
    TourSummary,
    TourUpdateRequest,
)
from .user import (
    AccountForm,
    AdminUpdateUserRequest,
    GuideSummary,
    UpdateMeRequest,
    UserResponse,
    UserSummary,
)

__all__ = [
    # Common
    "CamelStruct",
    "HealthResponse",
    "dump",
    "dump_many",
    "many",
    "normalize_email",
    "parse_id",
    "single",
    # Auth
    "ForgotPasswordRequest",
    "LoginRequest",
    "ResetPasswordRequest",
    "SignupRequest",
    "UpdatePasswordRequest",
    # Users
    "AccountForm",
    "AdminUpdateUserRequest",
    "GuideSummary",
    "UpdateMeRequest",
    "UserResponse",
    "UserSummary",
    # Tours
    "GeoPoint",
    "TourCreateRequest",
    "TourDetailResponse",
    "TourDistance",
    "TourResponse",
    "TourSummary",
    "TourUpdateRequest",
    # Reviews
    "ReviewCreateRequest",
    "ReviewResponse",
    "ReviewUpdateRequest",
    # Bookings
    "BookingCreateRequest",
    "BookingResponse",
    "BookingUpdateRequest",
]
