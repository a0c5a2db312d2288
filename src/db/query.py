"""Query-string driven filtering, sorting, projection and pagination.

Clients address columns by their public (camelCase) names:

    ?difficulty=easy&price[lt]=1500&sort=-ratingsAverage,price&fields=name,price&page=2&limit=10
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Select
from sqlalchemy.orm import InstrumentedAttribute

from src.core.exceptions import ValidationFailure

RESERVED_KEYS = frozenset({"page", "sort", "limit", "fields"})
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100
MAX_LIMIT = 1000

_FILTER_KEY = re.compile(r"^(?P<field>\w+)(?:\[(?P<op>gte|gt|lte|lt)\])?$")

_OPERATORS = {
    "eq": lambda column, value: column == value,
    "gte": lambda column, value: column >= value,
    "gt": lambda column, value: column > value,
    "lte": lambda column, value: column <= value,
    "lt": lambda column, value: column < value,
}


@dataclass
class QueryParams:
    """Parsed list-endpoint query string."""

    filters: list[tuple[str, str, str]] = field(default_factory=list)
    sort: list[str] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def parse(cls, query: Mapping[str, str]) -> QueryParams:
        """Build from a query-string mapping.

        Args:
            query: Query parameters (last value wins for repeated keys).

        Returns:
            Parsed parameters.

        Raises:
            ValidationFailure: If page or limit are not positive integers.
        """
        params = cls(
            sort=_split(query.get("sort")),
            fields=_split(query.get("fields")),
            page=_positive_int(query.get("page"), "page", DEFAULT_PAGE),
            limit=min(_positive_int(query.get("limit"), "limit", DEFAULT_LIMIT), MAX_LIMIT),
        )
        for key, value in query.items():
            if key in RESERVED_KEYS:
                continue
            match = _FILTER_KEY.match(key)
            if match is None:
                continue
            params.filters.append((match["field"], match["op"] or "eq", value))
        return params


class QueryFeatures:
    """Applies ``QueryParams`` to a select over one model.

    Only columns listed in ``columns`` can be filtered or sorted on;
    unknown filter keys are ignored, unknown sort keys are rejected.
    """

    def __init__(
        self,
        columns: Mapping[str, InstrumentedAttribute[Any]],
        default_sort: str = "-createdAt",
    ) -> None:
        self._columns = columns
        self._default_sort = default_sort

    def filter(self, stmt: Select[Any], params: QueryParams) -> Select[Any]:
        for name, op, raw in params.filters:
            column = self._columns.get(name)
            if column is None:
                continue
            value = _coerce(column, name, raw)
            stmt = stmt.where(_OPERATORS[op](column, value))
        return stmt

    def sort(self, stmt: Select[Any], params: QueryParams) -> Select[Any]:
        for key in params.sort or [self._default_sort]:
            descending = key.startswith("-")
            name = key.lstrip("-")
            column = self._columns.get(name)
            if column is None:
                raise ValidationFailure(f"Cannot sort by {name}")
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        return stmt

    def paginate(self, stmt: Select[Any], params: QueryParams) -> Select[Any]:
        return stmt.offset(params.offset).limit(params.limit)

    def apply(self, stmt: Select[Any], params: QueryParams) -> Select[Any]:
        """Filter, sort and paginate ``stmt``."""
        return self.paginate(self.sort(self.filter(stmt, params), params), params)


def project(document: dict[str, Any], fields: Iterable[str]) -> dict[str, Any]:
    """Limit a serialized document to the requested fields (``id`` is always kept)."""
    wanted = [name for name in fields if not name.startswith("-")]
    excluded = {name[1:] for name in fields if name.startswith("-")}
    if wanted:
        return {key: value for key, value in document.items() if key == "id" or key in wanted}
    return {key: value for key, value in document.items() if key not in excluded}


def _split(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _positive_int(value: str | None, name: str, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except ValueError as e:
        raise ValidationFailure(f"Invalid {name}: {value}") from e
    if number < 1:
        raise ValidationFailure(f"Invalid {name}: {value}")
    return number


def _coerce(column: InstrumentedAttribute[Any], name: str, raw: str) -> Any:
    python_type = column.type.python_type
    try:
        if python_type is bool:
            if raw.lower() not in {"true", "false"}:
                raise ValueError(raw)
            return raw.lower() == "true"
        return python_type(raw)
    except (TypeError, ValueError) as e:
        raise ValidationFailure(f"Invalid {name}: {raw}") from e
