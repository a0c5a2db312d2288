"""Dependency injection providers for Litestar."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from datetime import timedelta
from pathlib import Path

from litestar import Request
from litestar.datastructures import State
from litestar.di import Provide
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.security import JWTConfig, JWTService, PasswordService, ResetTokenService
from src.api.services.auth import AuthService
from src.api.services.booking import BookingService
from src.api.services.email import EmailService
from src.api.services.payments import StripeClient
from src.api.services.photos import PhotoService
from src.api.services.review import ReviewService
from src.api.services.tour import TourService
from src.api.services.user import UserService
from src.api.templating import USER_PHOTOS_DIR
from src.core.config import Settings
from src.db import DatabaseManager
from src.db.models import User
from src.db.repositories import (
    BookingRepository,
    ReviewRepository,
    TourRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

# Global singleton instances (created at app startup)
_db_manager: DatabaseManager | None = None
_jwt_service: JWTService | None = None
_password_service: PasswordService | None = None
_email_service: EmailService | None = None
_stripe_client: StripeClient | None = None
_photo_service: PhotoService | None = None


# -----------------------------------------------------------------------------
# Singletons
# -----------------------------------------------------------------------------


def provide_settings(state: State) -> Settings:
    """Provide the settings the application was created with."""
    return state.settings


def get_jwt_service() -> JWTService:
    """Provide JWT service singleton.

    Raises:
        RuntimeError: If not initialized.
    """
    if _jwt_service is None:
        raise RuntimeError("JWT service not initialized")
    return _jwt_service


def get_password_service() -> PasswordService:
    """Provide password service singleton.

    Raises:
        RuntimeError: If not initialized.
    """
    if _password_service is None:
        raise RuntimeError("Password service not initialized")
    return _password_service


def get_email_service() -> EmailService:
    """Provide e-mail service singleton.

    Raises:
        RuntimeError: If not initialized.
    """
    if _email_service is None:
        raise RuntimeError("Email service not initialized")
    return _email_service


def get_stripe_client() -> StripeClient:
    """Provide payment client singleton.

    Raises:
        RuntimeError: If not initialized.
    """
    if _stripe_client is None:
        raise RuntimeError("Payment client not initialized")
    return _stripe_client


def get_photo_service() -> PhotoService:
    """Provide profile photo service singleton.

    Raises:
        RuntimeError: If not initialized.
    """
    if _photo_service is None:
        raise RuntimeError("Photo service not initialized")
    return _photo_service


def get_db_manager() -> DatabaseManager:
    """Provide the database manager.

    Raises:
        RuntimeError: If not initialized.
    """
    if _db_manager is None:
        raise RuntimeError("Database not initialized")
    return _db_manager


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide database session for request scope.

    Yields:
        Database session that commits on success and rolls back on error.
    """
    async with get_db_manager().session() as session:
        yield session


# -----------------------------------------------------------------------------
# Request-scoped services
# -----------------------------------------------------------------------------


async def get_auth_service(session: AsyncSession, settings: Settings) -> AuthService:
    """Provide auth service for request scope."""
    repository = UserRepository(session)
    return AuthService(
        repository=repository,
        jwt_service=get_jwt_service(),
        password_service=get_password_service(),
        reset_tokens=ResetTokenService(
            repository,
            lifetime=timedelta(minutes=settings.password_reset_expire_minutes),
        ),
        email_service=get_email_service(),
    )


async def get_user_service(session: AsyncSession) -> UserService:
    """Provide user service for request scope."""
    return UserService(repository=UserRepository(session))


async def get_tour_service(session: AsyncSession) -> TourService:
    """Provide tour service for request scope."""
    return TourService(repository=TourRepository(session))


async def get_review_service(session: AsyncSession) -> ReviewService:
    """Provide review service for request scope."""
    return ReviewService(
        repository=ReviewRepository(session),
        tour_repository=TourRepository(session),
    )


async def get_booking_service(session: AsyncSession) -> BookingService:
    """Provide booking service for request scope."""
    return BookingService(
        repository=BookingRepository(session),
        tour_repository=TourRepository(session),
        user_repository=UserRepository(session),
        payments=get_stripe_client(),
    )


async def provide_photo_service() -> PhotoService:
    return get_photo_service()


# -----------------------------------------------------------------------------
# Authenticated user
# -----------------------------------------------------------------------------


async def get_current_user(request: Request, session: AsyncSession) -> User:
    """User attached by ``auth_guard``, bound to the request's session.

    The guard resolves the user in its own unit of work; merging makes
    later changes flush with the request session.

    Raises:
        RuntimeError: If the route is not guarded.
    """
    user = request.state.get("user")
    if user is None:
        raise RuntimeError("Route requires auth_guard")
    return await session.merge(user, load=False)


async def get_optional_user(request: Request) -> User | None:
    """User attached by ``optional_auth_guard``, if any."""
    return request.state.get("user")


# -----------------------------------------------------------------------------
# Lifecycle management
# -----------------------------------------------------------------------------


async def init_services(settings: Settings) -> None:
    """Initialize all service singletons.

    Called during application startup.

    Args:
        settings: Application settings.
    """
    global \
        _db_manager, \
        _jwt_service, \
        _password_service, \
        _email_service, \
        _stripe_client, \
        _photo_service

    # Initialize database
    _db_manager = DatabaseManager.from_settings(settings)
    logger.info("Database connection pool initialized")

    # Initialize authentication services
    jwt_config = JWTConfig(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_in=timedelta(days=settings.jwt_expires_in_days),
    )
    _jwt_service = JWTService(jwt_config)
    _password_service = PasswordService(rounds=settings.bcrypt_rounds)
    logger.info("Authentication services initialized")

    # Initialize outbound integrations
    _email_service = EmailService(settings)
    _stripe_client = StripeClient(settings)
    await _stripe_client.connect()

    photo_dir = Path(settings.user_photo_dir) if settings.user_photo_dir else USER_PHOTOS_DIR
    _photo_service = PhotoService(photo_dir, size=settings.user_photo_size)


async def shutdown_services() -> None:
    """Cleanup service resources.

    Called during application shutdown.
    """
    global \
        _db_manager, \
        _jwt_service, \
        _password_service, \
        _email_service, \
        _stripe_client, \
        _photo_service

    if _stripe_client is not None:
        await _stripe_client.close()
        _stripe_client = None

    if _db_manager is not None:
        await _db_manager.close()
        _db_manager = None
        logger.info("Database connections closed")

    _jwt_service = None
    _password_service = None
    _email_service = None
    _photo_service = None


# Dependency providers for Litestar
dependencies = {
    "settings": Provide(provide_settings, sync_to_thread=False),
    "session": Provide(get_db_session),
    # Services
    "auth_service": Provide(get_auth_service),
    "user_service": Provide(get_user_service),
    "tour_service": Provide(get_tour_service),
    "review_service": Provide(get_review_service),
    "booking_service": Provide(get_booking_service),
    "photo_service": Provide(provide_photo_service),
    # Authenticated user
    "current_user": Provide(get_current_user),
    "optional_user": Provide(get_optional_user),
}
