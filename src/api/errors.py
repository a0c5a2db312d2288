"""Error normalization.

Every failure leaves the application as ``{"status", "message"}`` JSON (or
an error page for rendered routes). Operational errors keep their message;
anything else becomes a generic 500 in production and is logged.
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass
from typing import Any

import msgspec
from litestar import MediaType, Request, Response
from litestar.exceptions import HTTPException, NotFoundException, ValidationException
from litestar.response import Template
from litestar.types import ExceptionHandlersMap
from sqlalchemy.exc import IntegrityError

from src.core.config import Settings
from src.core.exceptions import AppError

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Something went wrong!"
GENERIC_PAGE_MESSAGE = "Please try again later."
DUPLICATE_MESSAGE = "Duplicate field value. Please use another value!"
INVALID_INPUT_PREFIX = "Invalid input data."


@dataclass
class NormalizedError:
    """Result of mapping an exception onto the public error shape."""

    status_code: int
    message: str
    is_operational: bool
    headers: dict[str, str] | None = None

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"


def normalize_error(exc: Exception, path: str) -> NormalizedError:
    """Map an exception to a status code and message.

    Args:
        exc: Raised exception.
        path: Request path, used for unmatched-route messages.

    Returns:
        Normalized error.
    """
    if isinstance(exc, AppError):
        return NormalizedError(exc.status_code, exc.message, exc.is_operational, exc.headers)

    if isinstance(exc, ValidationException):
        return NormalizedError(400, validation_message(exc), True)

    if isinstance(exc, msgspec.ValidationError):
        return NormalizedError(400, f"{INVALID_INPUT_PREFIX} {exc}", True)

    if isinstance(exc, IntegrityError):
        return NormalizedError(409, DUPLICATE_MESSAGE, True)

    if isinstance(exc, NotFoundException):
        return NormalizedError(404, f"Can't find {path} on this server!", True)

    if isinstance(exc, HTTPException):
        return NormalizedError(exc.status_code, exc.detail, True, exc.headers)

    return NormalizedError(500, str(exc) or GENERIC_MESSAGE, False)


def validation_message(exc: ValidationException) -> str:
    """Join the decoder's per-field messages into one sentence list."""
    messages = []
    for error in exc.extra if isinstance(exc.extra, list) else []:
        if not isinstance(error, dict):
            continue
        key = error.get("key")
        message = str(error.get("message", "Invalid value"))
        messages.append(f"{key}: {message}" if key and key != "data" else message)
    if not messages:
        return f"{INVALID_INPUT_PREFIX} {exc.detail}"
    return f"{INVALID_INPUT_PREFIX} {'. '.join(messages)}"


def error_body(error: NormalizedError, exc: Exception, settings: Settings) -> dict[str, Any]:
    """Build the JSON body for an API error.

    Args:
        error: Normalized error.
        exc: Original exception.
        settings: Application settings.

    Returns:
        Response body. Development adds the error type and stack trace;
        production replaces unknown errors' messages.
    """
    if settings.is_production:
        if not error.is_operational:
            return {"status": "error", "message": GENERIC_MESSAGE}
        return {"status": error.status, "message": error.message}

    return {
        "status": error.status,
        "error": {"name": type(exc).__name__, "statusCode": error.status_code},
        "message": error.message,
        "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    }


def page_message(error: NormalizedError, settings: Settings) -> str:
    """Message shown on the rendered error page."""
    if settings.is_production and not error.is_operational:
        return GENERIC_PAGE_MESSAGE
    return error.message


def render_error(request: Request, exc: Exception) -> Response:
    """Produce the error response for ``exc`` raised while serving ``request``."""
    settings: Settings = request.app.state.settings
    error = normalize_error(exc, request.url.path)

    if not error.is_operational:
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc!r}",
            exc_info=exc,
        )

    if request.url.path.startswith("/api"):
        return Response(
            content=error_body(error, exc, settings),
            status_code=error.status_code,
            media_type=MediaType.JSON,
            headers=error.headers,
        )

    return Template(
        template_name="error.html",
        context={"title": "Something went wrong!", "msg": page_message(error, settings)},
        status_code=error.status_code,
        headers=error.headers,
    )


exception_handlers: ExceptionHandlersMap = {Exception: render_error}
