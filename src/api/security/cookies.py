"""Session cookie helpers."""

from __future__ import annotations

from datetime import timedelta

from litestar import Response

SESSION_COOKIE = "jwt"
LOGGED_OUT_VALUE = "loggedout"
LOGOUT_COOKIE_SECONDS = 10


def set_session_cookie(
    response: Response,
    token: str,
    *,
    lifetime: timedelta,
    secure: bool = False,
) -> None:
    """Attach the bearer token as an HttpOnly, strict same-site cookie.

    Args:
        response: Outgoing response.
        token: Encoded bearer token.
        lifetime: Cookie lifetime.
        secure: Only send the cookie over HTTPS (production).
    """
    seconds = int(lifetime.total_seconds())
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=seconds,
        expires=seconds,
        httponly=True,
        secure=secure,
        samesite="strict",
    )


def clear_session_cookie(response: Response, *, secure: bool = False) -> None:
    """Overwrite the session cookie with a short-lived placeholder.

    Args:
        response: Outgoing response.
        secure: Only send the cookie over HTTPS (production).
    """
    response.set_cookie(
        SESSION_COOKIE,
        LOGGED_OUT_VALUE,
        max_age=LOGOUT_COOKIE_SECONDS,
        expires=LOGOUT_COOKIE_SECONDS,
        httponly=True,
        secure=secure,
        samesite="strict",
    )
