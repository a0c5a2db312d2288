"""Request body size limit.

The declared ``Content-Length`` is checked up front, and the bytes actually
received are counted as the body streams in, so chunked uploads without a
length header are cut off as soon as they pass the limit. Multipart bodies
(photo uploads) get their own, larger allowance.
"""

from __future__ import annotations

import logging

from litestar.datastructures import Headers
from litestar.enums import RequestEncodingType, ScopeType
from litestar.middleware import MiddlewareProtocol
from litestar.types import ASGIApp, Message, Receive, Scope, Send

from src.core.exceptions import PayloadTooLargeError, ValidationFailure

logger = logging.getLogger(__name__)


def too_large(limit: int) -> PayloadTooLargeError:
    return PayloadTooLargeError(f"Request body exceeds the {limit} byte limit")


class BodySizeLimitMiddleware(MiddlewareProtocol):
    """Rejects request bodies over the configured size with 413."""

    def __init__(self, app: ASGIApp, max_bytes: int, max_upload_bytes: int | None = None) -> None:
        """Initialize middleware.

        Args:
            app: Next ASGI application.
            max_bytes: Limit for JSON and form bodies.
            max_upload_bytes: Limit for multipart bodies (defaults to ``max_bytes``).
        """
        self.app = app
        self.max_bytes = max_bytes
        self.max_upload_bytes = max_upload_bytes or max_bytes

    def limit_for(self, content_type: str) -> int:
        if content_type.startswith(RequestEncodingType.MULTI_PART):
            return self.max_upload_bytes
        return self.max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != ScopeType.HTTP:
            await self.app(scope, receive, send)
            return

        headers = Headers(scope["headers"])
        limit = self.limit_for(headers.get("content-type", ""))

        content_length = headers.get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError as e:
                raise ValidationFailure("Invalid Content-Length header") from e
            if declared > limit:
                logger.warning(f"Rejected {declared} byte body on {scope['path']}")
                raise too_large(limit)

        received = 0

        async def counting_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    logger.warning(f"Rejected streamed body over {limit} bytes on {scope['path']}")
                    raise too_large(limit)
            return message

        await self.app(scope, counting_receive, send)
