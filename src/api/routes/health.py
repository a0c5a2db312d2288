"""Health check endpoint."""

from __future__ import annotations

from collections.abc import Sequence

from litestar import Controller, get

from src.api.dependencies import get_db_manager
from src.api.schemas import HealthResponse


class HealthController(Controller):
    """Service health."""

    path = "/health"
    tags: Sequence[str] | None = ["Health"]

    @get("")
    async def health_check(self) -> HealthResponse:
        """Check API and database connectivity.

        Returns health status of the service and its dependencies.
        """
        database = await get_db_manager().health_check()
        return HealthResponse(status="healthy" if database else "unhealthy", database=database)
