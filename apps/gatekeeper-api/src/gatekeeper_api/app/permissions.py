"""Permission map of the Gatekeeper API and the options that install it.

Every permission key the routers declare lives here. Leaves are predicates
that may take no arguments, just the principal, or the principal plus the
request parameters bound by the route requirement.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import UUID

from gatekeeper_api.core.auth import AuthenticatedPrincipal, authenticate_request
from gatekeeper_api.core.authz import (
    AuthorizationCallbacks,
    AuthorizationOptions,
    PermissionsMap,
    PrincipalCallbacks,
)
from gatekeeper_api.db import Database
from gatekeeper_api.settings import Settings


def _as_uuid(value: Any) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def always() -> bool:
    return True


def is_active_principal(principal: AuthenticatedPrincipal) -> bool:
    return bool(principal.email)


def targets_other_user(principal: AuthenticatedPrincipal, params: Mapping[str, Any]) -> bool:
    """True when the bound ``user_id`` names somebody other than the principal."""

    target = _as_uuid(params.get("user_id"))
    return target is not None and target != principal.user_id


def make_task_owner_predicate(database: Database):
    """Return a predicate checking that the principal owns the bound ``task_id``."""

    async def owns_task(principal: AuthenticatedPrincipal, params: Mapping[str, Any]) -> bool:
        task_id = _as_uuid(params.get("task_id"))
        if task_id is None:
            return False

        # Deferred import avoids circular dependency during app startup.
        from gatekeeper_api.models import Task

        async with database.session_scope() as session:
            task = await session.get(Task, task_id)
        return task is not None and task.owner_id == principal.user_id

    return owns_task


def create_permissions_map(database: Database) -> PermissionsMap:
    owns_task = make_task_owner_predicate(database)
    return {
        "user": {
            "list": always,
            "create": always,
            "read": {"own": always, "others": targets_other_user},
            "update": {"own": always, "others": targets_other_user},
            "delete": {"others": targets_other_user},
        },
        "task": {
            "list": {"own": always},
            "create": is_active_principal,
            "read": {"own": owns_task, "others": always},
            "update": {"own": owns_task},
            "delete": {"own": owns_task, "others": always},
        },
        "permission": {
            "list": always,
        },
    }


def principal_permissions(principal: AuthenticatedPrincipal) -> tuple[str, ...]:
    return principal.permissions


def build_authorization_options(settings: Settings, database: Database) -> AuthorizationOptions:
    return AuthorizationOptions(
        permissions_map=create_permissions_map(database),
        permission_string_separator=settings.permission_string_separator,
        strict_route_permissions=settings.strict_route_permissions,
        callback=AuthorizationCallbacks(
            principal=PrincipalCallbacks(
                retrieve_from_request=authenticate_request,
                get_permissions=principal_permissions,
            )
        ),
    )


__all__ = [
    "build_authorization_options",
    "create_permissions_map",
    "make_task_owner_predicate",
    "targets_other_user",
]
