"""Shared schema base, validators and response envelopes."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from uuid import UUID

import msgspec
from email_validator import EmailNotValidError, validate_email

from src.core.exceptions import ValidationFailure


class CamelStruct(msgspec.Struct, kw_only=True, rename="camel"):
    """Base for API schemas: camelCase on the wire, snake_case in Python."""

    def sent_fields(self, *, exclude: Iterable[str] = ()) -> dict[str, Any]:
        """Fields the client actually sent, by Python name.

        Fields left at ``msgspec.UNSET`` are omitted; explicit nulls are kept.
        """
        skipped = set(exclude)
        return {
            name: getattr(self, name)
            for name in self.__struct_fields__
            if name not in skipped and getattr(self, name) is not msgspec.UNSET
        }


def normalize_email(value: str) -> str:
    """Validate an address and return its normalized form.

    Raises:
        ValueError: If the address is not a valid email (msgspec reports
            this as a validation error during decoding).
    """
    try:
        return validate_email(value, check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValueError("Please provide a valid email") from e


def dump(schema: type[msgspec.Struct], obj: Any) -> dict[str, Any]:
    """Serialize an ORM object (or mapping) through ``schema``."""
    return msgspec.to_builtins(msgspec.convert(obj, schema, from_attributes=True))


def dump_many(schema: type[msgspec.Struct], objs: Iterable[Any]) -> list[dict[str, Any]]:
    return [dump(schema, obj) for obj in objs]


def single(document: Any) -> dict[str, Any]:
    """``{status, data: {data: document}}`` envelope."""
    return {"status": "success", "data": {"data": document}}


def many(documents: list[Any]) -> dict[str, Any]:
    """``{status, results, data: {data: [...]}}`` envelope."""
    return {"status": "success", "results": len(documents), "data": {"data": documents}}


class HealthResponse(msgspec.Struct, kw_only=True):
    """Health check response."""

    status: str
    database: bool


def parse_id(value: str, field: str = "id") -> UUID:
    """Parse a document ID taken from the path.

    Raises:
        ValidationFailure: If ``value`` is not a UUID.
    """
    try:
        return UUID(value)
    except ValueError as e:
        raise ValidationFailure(f"Invalid {field}: {value}") from e
