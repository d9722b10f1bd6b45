"""Health checks for the API process, its database and the permission table."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper_api.common.logging import log_context
from gatekeeper_api.core.authz import PermissionTable
from gatekeeper_api.settings import Settings

from .schemas import ComponentHealth, HealthCheckResponse

logger = logging.getLogger(__name__)


class HealthService:
    def __init__(self, *, settings: Settings, session: AsyncSession, table: PermissionTable) -> None:
        self._settings = settings
        self._session = session
        self._table = table

    async def status(self) -> HealthCheckResponse:
        components = [
            ComponentHealth(name="api", status="available"),
            await self._check_database(),
            self._check_authorization(),
        ]
        healthy = all(component.status == "available" for component in components)
        return HealthCheckResponse(
            status="ok" if healthy else "error",
            version=self._settings.app_version,
            timestamp=datetime.now(UTC),
            components=components,
        )

    async def _check_database(self) -> ComponentHealth:
        try:
            await self._session.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning(
                "health.database.unavailable",
                extra=log_context(exception_type=type(exc).__name__),
            )
            return ComponentHealth(name="database", status="unavailable", detail=str(exc))
        return ComponentHealth(name="database", status="available")

    def _check_authorization(self) -> ComponentHealth:
        count = len(self._table)
        return ComponentHealth(
            name="authorization",
            status="available" if count else "unavailable",
            detail=f"{count} permissions",
        )


__all__ = ["HealthService"]
