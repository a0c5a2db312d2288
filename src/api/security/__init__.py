"""Security module for authentication and authorization."""

from .cookies import (
    SESSION_COOKIE,
    clear_session_cookie,
    set_session_cookie,
)
from .guards import (
    AuthPipeline,
    auth_guard,
    authorize,
    extract_token,
    extract_token_from_header,
    optional_auth_guard,
    restrict_to,
)
from .jwt import (
    JWTConfig,
    JWTService,
    TokenPayload,
)
from .password import (
    PasswordService,
    generate_token,
    hash_token,
)
from .reset_token import ResetTokenService

__all__ = [
    # Cookies
    "SESSION_COOKIE",
    "clear_session_cookie",
    "set_session_cookie",
    # Guards
    "AuthPipeline",
    "auth_guard",
    "authorize",
    "extract_token",
    "extract_token_from_header",
    "optional_auth_guard",
    "restrict_to",
    # JWT
    "JWTConfig",
    "JWTService",
    "TokenPayload",
    # Password
    "PasswordService",
    "generate_token",
    "hash_token",
    # Reset tokens
    "ResetTokenService",
]
