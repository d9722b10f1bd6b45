"""Startup and shutdown for the Gatekeeper application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import Lifespan

from gatekeeper_api.common.logging import log_context
from gatekeeper_api.core.authz import GUARD_STATE_ATTRIBUTE
from gatekeeper_api.db import Database, DatabaseConfig
from gatekeeper_api.settings import Settings

logger = logging.getLogger(__name__)


def ensure_runtime_dirs(settings: Settings) -> None:
    """Create the directory holding a file-backed SQLite database."""

    path = settings.sqlite_path
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)


def create_application_lifespan(*, settings: Settings, database: Database) -> Lifespan[FastAPI]:
    """Open the database (creating missing tables) for the life of the app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        ensure_runtime_dirs(settings)
        database.init(DatabaseConfig.from_settings(settings))
        await database.create_all()

        guard = getattr(app.state, GUARD_STATE_ATTRIBUTE, None)
        logger.info(
            "app.startup",
            extra=log_context(
                app_version=settings.app_version,
                permissions=len(guard.table) if guard is not None else 0,
            ),
        )
        try:
            yield
        finally:
            await database.dispose()
            logger.info("app.shutdown")

    return lifespan


__all__ = ["create_application_lifespan", "ensure_runtime_dirs"]
