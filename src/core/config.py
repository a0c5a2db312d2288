"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.enums import Environment


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Runtime mode
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Runtime mode (development or production)",
    )

    # API settings
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=3000, description="API server port")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Origins allowed to send credentialed requests",
    )

    # Database settings
    database_url: str = Field(
        default="postgresql+asyncpg://tourbook:<PASSWORD>@localhost:5432/tourbook",
        description="Database connection URL, may contain a <PASSWORD> placeholder",
    )
    database_password: str = Field(
        default="tourbook",
        description="Substituted for <PASSWORD> in database_url",
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size")
    db_max_overflow: int = Field(default=10, description="Max overflow connections")
    db_echo: bool = Field(default=False, description="Echo SQL statements")

    # JWT Authentication Settings
    jwt_secret_key: str = Field(
        default="CHANGE_ME_IN_PRODUCTION_USE_STRONG_SECRET_KEY_256_BITS",
        description="Secret key for JWT signing (use strong random key in production)",
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm",
    )
    jwt_expires_in_days: int = Field(
        default=90,
        ge=1,
        le=365,
        description="Bearer token lifetime in days",
    )
    jwt_cookie_expires_in_days: int = Field(
        default=90,
        ge=1,
        le=365,
        description="Session cookie lifetime in days",
    )

    # Credentials
    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=16,
        description="bcrypt cost factor",
    )
    password_reset_expire_minutes: int = Field(
        default=10,
        ge=1,
        le=60,
        description="Password reset token lifetime in minutes",
    )

    # Request limits
    rate_limit_max: int = Field(
        default=100,
        ge=1,
        description="Requests allowed per client address per window on /api",
    )
    rate_limit_window_seconds: int = Field(
        default=3600,
        ge=1,
        description="Rate limit window length in seconds",
    )
    max_body_size_bytes: int = Field(
        default=10 * 1024,
        ge=1,
        description="Maximum accepted JSON or form body size",
    )
    max_upload_size_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Maximum accepted multipart (photo upload) body size",
    )

    # Uploaded files
    user_photo_dir: str | None = Field(
        default=None,
        description="Directory for resized user photos (defaults to static/img/users)",
    )
    user_photo_size: int = Field(
        default=500,
        ge=16,
        description="Edge length in pixels of stored square user photos",
    )

    # Payment provider
    stripe_secret_key: str = Field(
        default="",
        description="Stripe secret API key",
    )
    stripe_api_base: str = Field(
        default="https://api.stripe.com",
        description="Stripe API base URL",
    )

    # Outbound e-mail
    email_from: str = Field(
        default="hello@tourbook.io",
        description="Sender address for outbound e-mail",
    )
    email_from_name: str = Field(
        default="Tourbook",
        description="Sender display name for outbound e-mail",
    )
    smtp_host: str = Field(
        default="sandbox.smtp.mailtrap.io",
        description="SMTP host used in development",
    )
    smtp_port: int = Field(default=2525, description="SMTP port used in development")
    smtp_user: str = Field(default="", description="SMTP username used in development")
    smtp_password: str = Field(default="", description="SMTP password used in development")
    sendgrid_username: str = Field(default="apikey", description="SendGrid SMTP username")
    sendgrid_password: str = Field(default="", description="SendGrid SMTP password")

    @computed_field
    @property
    def resolved_database_url(self) -> str:
        """Database URL with the password placeholder substituted."""
        return self.database_url.replace("<PASSWORD>", self.database_password)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    get_settings.cache_clear()
