"""FastAPI dependencies that bridge HTTP requests to auth and persistence."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper_api.core.auth import (
    AuthenticatedPrincipal,
    AuthenticationError,
    authenticate_request,
)
from gatekeeper_api.core.authz import PermissionTable, get_authorization_guard
from gatekeeper_api.db import get_db_session
from gatekeeper_api.settings import Settings, get_settings


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_permission_table(request: Request) -> PermissionTable:
    return get_authorization_guard(request).table


async def get_current_principal(request: Request) -> AuthenticatedPrincipal:
    """Return the authenticated principal or raise 401."""

    principal = await authenticate_request(request)
    if principal is None:
        raise AuthenticationError("Authentication required")
    return principal


SessionDep = Annotated[AsyncSession, Depends(get_db_session)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
PermissionTableDep = Annotated[PermissionTable, Depends(get_permission_table)]
CurrentPrincipal = Annotated[AuthenticatedPrincipal, Depends(get_current_principal)]


def get_users_service(session: SessionDep):
    from gatekeeper_api.features.users.service import UsersService

    return UsersService(session=session)


def get_tasks_service(session: SessionDep):
    from gatekeeper_api.features.tasks.service import TasksService

    return TasksService(session=session)


__all__ = [
    "CurrentPrincipal",
    "PermissionTableDep",
    "SessionDep",
    "SettingsDep",
    "get_app_settings",
    "get_current_principal",
    "get_permission_table",
    "get_tasks_service",
    "get_users_service",
]
