"""Litestar application factory and configuration."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from litestar import Litestar
from litestar.config.compression import CompressionConfig
from litestar.config.cors import CORSConfig
from litestar.datastructures import State
from litestar.logging import LoggingConfig
from litestar.middleware import DefineMiddleware
from litestar.middleware.logging import LoggingMiddlewareConfig
from litestar.openapi import OpenAPIConfig
from litestar.static_files import create_static_files_router

from src.api.dependencies import dependencies, get_db_manager, init_services, shutdown_services
from src.api.errors import exception_handlers
from src.api.middleware import (
    BodySizeLimitMiddleware,
    FixedWindowLimiter,
    RateLimitMiddleware,
    SanitizeMiddleware,
)
from src.api.routes import (
    AccountViewController,
    AuthController,
    BookingController,
    HealthController,
    ReviewController,
    TourController,
    TourReviewController,
    UserController,
    ViewController,
)
from src.api.templating import STATIC_DIR, template_config
from src.core.config import Settings, get_settings
from src.db import is_sqlite

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: Litestar) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes services on startup and cleans up on shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting Tourbook in {settings.environment.value} mode")

    await init_services(settings)
    if is_sqlite(settings.resolved_database_url):
        # Local runs have no migration step
        await get_db_manager().create_tables()

    try:
        yield
    finally:
        logger.info("Shutting down Tourbook")
        await shutdown_services()


def build_logging_config(settings: Settings) -> LoggingConfig:
    level = "DEBUG" if settings.is_development else "INFO"
    return LoggingConfig(
        root={
            "level": level,
            "handlers": ["console"],
        },
        formatters={
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        handlers={
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
            },
        },
        loggers={
            "src": {
                "level": level,
                "propagate": True,
            },
            "httpx": {
                "level": "WARNING",
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "WARNING",
                "propagate": True,
            },
        },
    )


def build_middleware(settings: Settings) -> list[DefineMiddleware]:
    """Request pipeline, outermost first.

    Rate limiting counts every API request, the size limit runs before
    anything reads the body, and sanitization sees only bodies that fit.
    """
    middleware = [
        DefineMiddleware(
            RateLimitMiddleware,
            limiter=FixedWindowLimiter(settings.rate_limit_max, settings.rate_limit_window_seconds),
        ),
        DefineMiddleware(
            BodySizeLimitMiddleware,
            max_bytes=settings.max_body_size_bytes,
            max_upload_bytes=settings.max_upload_size_bytes,
        ),
        DefineMiddleware(SanitizeMiddleware),
    ]
    if settings.is_development:
        request_logging = LoggingMiddlewareConfig(
            request_log_fields=("method", "path"),
            response_log_fields=("status_code",),
        )
        middleware.insert(0, request_logging.middleware)
    return middleware


def create_app(settings: Settings | None = None) -> Litestar:
    """Create and configure Litestar application.

    Args:
        settings: Settings to use instead of the environment.

    Returns:
        Configured Litestar application instance.
    """
    settings = settings or get_settings()

    cors_config = CORSConfig(
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    openapi_config = OpenAPIConfig(
        title="Tourbook API",
        version="0.1.0",
        description="Tour booking REST API and website",
        path="/docs",
    )

    return Litestar(
        route_handlers=[
            HealthController,
            AuthController,
            UserController,
            TourController,
            TourReviewController,
            ReviewController,
            BookingController,
            ViewController,
            AccountViewController,
            create_static_files_router(path="/static", directories=[STATIC_DIR]),
        ],
        dependencies=dependencies,
        lifespan=[lifespan],
        middleware=build_middleware(settings),
        exception_handlers=exception_handlers,
        cors_config=cors_config,
        compression_config=CompressionConfig(backend="gzip", minimum_size=1000),
        logging_config=build_logging_config(settings),
        openapi_config=openapi_config,
        template_config=template_config,
        state=State({"settings": settings}),
        debug=settings.is_development,
    )


# Application instance for uvicorn
app = create_app()
