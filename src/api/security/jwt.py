"""JWT token handling for authentication."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from src.core.exceptions import InvalidTokenError, TokenExpiredError


@dataclass(frozen=True)
class TokenPayload:
    """Verified bearer token claims."""

    user_id: UUID
    issued_at: int  # seconds since epoch
    expires_at: int


@dataclass(frozen=True)
class JWTConfig:
    """JWT configuration."""

    secret_key: str
    algorithm: str = "HS256"
    expires_in: timedelta = timedelta(days=90)


class JWTService:
    """Bearer token creation and validation.

    Tokens are stateless: nothing is persisted server-side, and
    revocation happens through the user's password-changed timestamp.
    """

    def __init__(self, config: JWTConfig) -> None:
        """Initialize JWT service.

        Args:
            config: JWT configuration.
        """
        self._config = config

    @property
    def token_lifetime(self) -> timedelta:
        """Bearer token lifetime."""
        return self._config.expires_in

    def issue(self, user_id: UUID) -> str:
        """Create a signed token for a user.

        Args:
            user_id: User ID to encode as the subject.

        Returns:
            Encoded token string.
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self.token_lifetime).timestamp()),
        }
        return jwt.encode(payload, self._config.secret_key, algorithm=self._config.algorithm)

    def verify(self, token: str) -> TokenPayload:
        """Decode and validate a token.

        Args:
            token: Encoded token string.

        Returns:
            Verified token payload.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the signature, structure or subject is invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self._config.secret_key,
                algorithms=[self._config.algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError() from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError() from e

        try:
            user_id = UUID(str(payload["sub"]))
        except ValueError as e:
            raise InvalidTokenError() from e

        return TokenPayload(
            user_id=user_id,
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
        )
