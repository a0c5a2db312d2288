"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import timedelta
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from litestar import Litestar

from src.api import dependencies
from src.api.app import create_app
from src.api.dependencies import (
    get_db_manager,
    init_services,
    shutdown_services,
)
from src.api.security import JWTConfig, JWTService, PasswordService, ResetTokenService
from src.api.services.auth import AuthService
from src.api.services.email import EmailService
from src.api.services.payments import StripeClient
from src.core.config import Settings
from src.db.repositories import UserRepository
from tests.helpers import TEST_SECRET, make_user


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Provide test settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key=TEST_SECRET,
        bcrypt_rounds=4,
        rate_limit_max=1000,
        stripe_secret_key="sk_test_123",
        user_photo_dir=str(tmp_path / "users"),
    )


@pytest.fixture
def password_service() -> PasswordService:
    """Create password service with a low cost factor."""
    return PasswordService(rounds=4)


@pytest.fixture
def jwt_config() -> JWTConfig:
    """Create JWT config for testing."""
    return JWTConfig(secret_key=TEST_SECRET, expires_in=timedelta(days=90))


@pytest.fixture
def jwt_service(jwt_config: JWTConfig) -> JWTService:
    """Create JWT service for testing."""
    return JWTService(jwt_config)


@pytest.fixture
def mock_user_repository() -> AsyncMock:
    """Create mock user repository."""
    return AsyncMock(spec=UserRepository)


@pytest.fixture
def mock_email_service() -> AsyncMock:
    """Create mock e-mail service."""
    return AsyncMock(spec=EmailService)


@pytest.fixture
def mock_stripe_client() -> AsyncMock:
    """Create mock payment client."""
    client = AsyncMock(spec=StripeClient)
    client.create_checkout_session.return_value = {
        "id": "cs_test_123",
        "url": "https://checkout.stripe.com/c/pay/cs_test_123",
    }
    return client


@pytest.fixture
def auth_service(
    mock_user_repository: AsyncMock,
    jwt_service: JWTService,
    password_service: PasswordService,
    mock_email_service: AsyncMock,
) -> AuthService:
    """Create auth service with mocked repository and e-mail."""
    return AuthService(
        repository=mock_user_repository,
        jwt_service=jwt_service,
        password_service=password_service,
        reset_tokens=ResetTokenService(mock_user_repository),
        email_service=mock_email_service,
    )


@pytest.fixture
def mock_user() -> MagicMock:
    """Create a mock user for testing."""
    return make_user()


# -----------------------------------------------------------------------------
# Application fixtures
# -----------------------------------------------------------------------------


@pytest_asyncio.fixture
async def app(
    settings: Settings,
    mock_email_service: AsyncMock,
    mock_stripe_client: AsyncMock,
    monkeypatch: pytest.MonkeyPatch,
) -> AsyncGenerator[Litestar, None]:
    """Application wired to a fresh in-memory database.

    ASGITransport does not run the lifespan, so services are started here.
    """
    application = create_app(settings)
    await init_services(settings)
    await get_db_manager().create_tables()

    monkeypatch.setattr(dependencies, "get_email_service", lambda: mock_email_service)
    monkeypatch.setattr(dependencies, "get_stripe_client", lambda: mock_stripe_client)

    yield application

    await shutdown_services()


@pytest_asyncio.fixture
async def client(app: Litestar) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the application."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
