"""Input sanitization.

JSON and url-encoded bodies are read, every string value has ``<``
replaced with ``&lt;`` so stored text cannot open markup, and the cleaned
body is replayed to the application. Password fields are left untouched
because they are hashed, never rendered.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qsl, urlencode

import msgspec
from litestar.datastructures import Headers, MutableScopeHeaders
from litestar.enums import RequestEncodingType, ScopeType
from litestar.middleware import MiddlewareProtocol
from litestar.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

RAW_FIELDS = frozenset({"password", "passwordConfirm", "passwordCurrent"})
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


def neutralize_markup(value: Any, key: str | None = None) -> Any:
    """Escape ``<`` in every string nested in ``value``.

    Args:
        value: Decoded JSON value.
        key: Object key ``value`` was found under.

    Returns:
        Cleaned copy of ``value``.
    """
    if isinstance(value, str):
        return value if key in RAW_FIELDS else value.replace("<", "&lt;")
    if isinstance(value, list):
        return [neutralize_markup(item) for item in value]
    if isinstance(value, dict):
        return {name: neutralize_markup(item, name) for name, item in value.items()}
    return value


def sanitize_json(body: bytes) -> bytes:
    try:
        data = msgspec.json.decode(body)
    except msgspec.DecodeError:
        # Left for the handler to reject.
        return body
    return msgspec.json.encode(neutralize_markup(data))


def sanitize_form(body: bytes) -> bytes:
    pairs = parse_qsl(body.decode("latin-1"), keep_blank_values=True)
    cleaned = [(name, neutralize_markup(value, name)) for name, value in pairs]
    return urlencode(cleaned).encode("latin-1")


async def read_body(receive: Receive) -> bytes:
    chunks = []
    while True:
        message = await receive()
        if message["type"] != "http.request":
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


class SanitizeMiddleware(MiddlewareProtocol):
    """Rewrites JSON and form bodies with markup neutralized."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != ScopeType.HTTP or scope["method"] not in BODY_METHODS:
            await self.app(scope, receive, send)
            return

        media_type = Headers(scope["headers"]).get("content-type", "").split(";")[0].strip().lower()
        if media_type == RequestEncodingType.JSON:
            clean = sanitize_json
        elif media_type == RequestEncodingType.URL_ENCODED:
            clean = sanitize_form
        else:
            await self.app(scope, receive, send)
            return

        body = clean(await read_body(receive))
        MutableScopeHeaders(scope)["content-length"] = str(len(body))
        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if replayed:
                return await receive()
            replayed = True
            return {"type": "http.request", "body": body, "more_body": False}

        await self.app(scope, replay, send)
