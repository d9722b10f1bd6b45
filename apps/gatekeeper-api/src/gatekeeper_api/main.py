"""Application factory for the Gatekeeper API."""

from __future__ import annotations

from fastapi import FastAPI

from .app.lifecycles import create_application_lifespan
from .app.permissions import build_authorization_options
from .common.exceptions import register_exception_handlers
from .common.logging import setup_logging
from .common.middleware import register_middleware
from .core.authz import configure_authorization
from .db import DATABASE_STATE_ATTRIBUTE, Database
from .routers import api_router
from .settings import Settings, get_settings

API_PREFIX = "/api"


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app: routers first, then the authorization guard over them.

    Each call gets its own :class:`Database`, so tests can run several apps
    against different SQLite files in one process.
    """

    settings = settings or get_settings()
    setup_logging(settings)

    database = Database()
    docs = settings.api_docs_enabled
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url="/docs" if docs else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=create_application_lifespan(settings=settings, database=database),
    )
    app.state.settings = settings
    setattr(app.state, DATABASE_STATE_ATTRIBUTE, database)

    register_middleware(app, settings)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=API_PREFIX)

    # Route declarations are validated against the table here.
    configure_authorization(app, build_authorization_options(settings, database))
    return app


__all__ = ["API_PREFIX", "create_app"]
