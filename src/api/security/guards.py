"""Request authentication pipeline.

Stages run in a fixed order and the first failure wins:

1. extract the token (bearer header, then session cookie)
2. verify its signature and expiry
3. resolve the active user it names
4. reject tokens issued before the latest password change
5. (route-declared) check the user's role against an allow-set

``auth_guard``, ``optional_auth_guard`` and ``restrict_to`` wire the
pipeline into Litestar routes.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from typing import TYPE_CHECKING

from litestar.connection import ASGIConnection
from litestar.handlers import BaseRouteHandler
from litestar.types import Guard

from src.core.enums import Role
from src.core.exceptions import (
    ForbiddenError,
    PasswordChangedSinceError,
    UnauthenticatedError,
    UserNoLongerExistsError,
)
from src.db.repositories import UserRepository

from .cookies import LOGGED_OUT_VALUE, SESSION_COOKIE

if TYPE_CHECKING:
    from src.db.models import User

    from .jwt import JWTService

logger = logging.getLogger(__name__)

NOT_LOGGED_IN_MESSAGE = "You are not logged in! Please log in to get access."


def extract_token_from_header(authorization: str | None) -> str | None:
    """Extract bearer token from Authorization header.

    Args:
        authorization: Authorization header value.

    Returns:
        Token string if valid bearer token, None otherwise.
    """
    if not authorization:
        return None

    parts = authorization.split()
    return None if len(parts) != 2 or parts[0].lower() != "bearer" else parts[1]


def extract_token(authorization: str | None, cookie: str | None) -> str | None:
    """Pick the request's token: bearer header first, then the session cookie.

    Args:
        authorization: Authorization header value.
        cookie: Value of the ``jwt`` cookie.

    Returns:
        Token string, or None when the request carries none.
    """
    if token := extract_token_from_header(authorization):
        return token
    if cookie and cookie != LOGGED_OUT_VALUE:
        return cookie
    return None


def authorize(user: User, allowed: Collection[Role]) -> None:
    """Check a user's role against an allow-set.

    Args:
        user: Authenticated user.
        allowed: Roles permitted on the route.

    Raises:
        ForbiddenError: If the user's role is not allowed.
    """
    if user.role_enum not in allowed:
        raise ForbiddenError()


class AuthPipeline:
    """Resolves a bearer token to the active user it belongs to."""

    def __init__(self, jwt_service: JWTService, user_repo: UserRepository) -> None:
        """Initialize pipeline.

        Args:
            jwt_service: Token verifier.
            user_repo: User repository.
        """
        self._jwt_service = jwt_service
        self._user_repo = user_repo

    async def authenticate(self, token: str | None) -> User:
        """Run the verification stages for a token.

        Args:
            token: Extracted token, or None when the request had none.

        Returns:
            The authenticated user.

        Raises:
            UnauthenticatedError: If there is no token.
            InvalidTokenError: If the token is malformed or tampered with.
            TokenExpiredError: If the token has expired.
            UserNoLongerExistsError: If the user is gone or deactivated.
            PasswordChangedSinceError: If the password changed after issue.
        """
        if not token:
            raise UnauthenticatedError(NOT_LOGGED_IN_MESSAGE)

        payload = self._jwt_service.verify(token)

        user = await self._user_repo.get_active_user(payload.user_id)
        if user is None:
            raise UserNoLongerExistsError()

        if user.changed_password_after(payload.issued_at):
            raise PasswordChangedSinceError()

        return user

    async def identify(self, token: str | None) -> User | None:
        """Best-effort variant of ``authenticate`` for rendered pages.

        Never raises: pages render for an anonymous visitor whatever goes
        wrong while resolving the user, including database failures.

        Args:
            token: Extracted token, or None.

        Returns:
            The user, or None if any stage fails.
        """
        if not token:
            return None
        try:
            return await self.authenticate(token)
        except UnauthenticatedError as e:
            logger.debug(f"Ignoring credentials on optional route: {e.message}")
        except Exception as e:
            logger.warning(f"Could not identify visitor, continuing anonymously: {e!r}")
        return None


# -----------------------------------------------------------------------------
# Litestar guards
# -----------------------------------------------------------------------------


async def resolve_user(connection: ASGIConnection, *, required: bool) -> User | None:
    """Run the pipeline for a connection in its own unit of work.

    Args:
        connection: ASGI connection.
        required: Raise on failure instead of returning None.

    Returns:
        The resolved user, or None for anonymous visitors when not required.
    """
    from src.api.dependencies import get_db_manager, get_jwt_service

    token = extract_token(
        connection.headers.get("authorization"),
        connection.cookies.get(SESSION_COOKIE),
    )
    async with get_db_manager().session() as session:
        pipeline = AuthPipeline(get_jwt_service(), UserRepository(session))
        if required:
            return await pipeline.authenticate(token)
        return await pipeline.identify(token)


async def auth_guard(connection: ASGIConnection, _: BaseRouteHandler) -> None:
    """Guard that requires an authenticated user.

    Stores the user in ``connection.state["user"]`` for downstream handlers.

    Raises:
        UnauthenticatedError: If any authentication stage fails.
    """
    connection.state["user"] = await resolve_user(connection, required=True)


async def optional_auth_guard(connection: ASGIConnection, _: BaseRouteHandler) -> None:
    """Guard that attaches the user when the request carries valid credentials."""
    connection.state["user"] = await resolve_user(connection, required=False)


def restrict_to(allowed: Collection[Role]) -> Guard:
    """Build a guard requiring one of ``allowed`` roles.

    Must run after ``auth_guard``.

    Args:
        allowed: Roles permitted on the route.

    Returns:
        Guard function.
    """

    async def role_guard(connection: ASGIConnection, _: BaseRouteHandler) -> None:
        authorize(connection.state["user"], allowed)

    return role_guard
