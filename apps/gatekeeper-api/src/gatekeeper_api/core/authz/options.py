"""Configuration surface of the authorization engine."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from fastapi import FastAPI
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from gatekeeper_api.common.logging import log_context

from .errors import PermissionConfigurationError
from .guard import GUARD_STATE_ATTRIBUTE, AuthorizationGuard
from .resolver import DEFAULT_SEPARATOR, resolve_permission_map, validate_separator
from .routes import validate_route_permissions
from .types import PermissionGroup

logger = logging.getLogger(__name__)


class _OptionsModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)


class PrincipalCallbacks(_OptionsModel):
    """How the guard finds the principal and the principal's grants."""

    # (request) -> principal | None, optionally awaitable
    retrieve_from_request: Callable[[Any], Any]
    # (principal) -> iterable of permission keys, optionally awaitable
    get_permissions: Callable[[Any], Any]


class AuthorizationCallbacks(_OptionsModel):
    principal: PrincipalCallbacks


class AuthorizationOptions(_OptionsModel):
    """Options accepted by :func:`configure_authorization`.

    ``permissions_map`` is either nested ``dict``s whose leaves are predicates,
    for example::

        {
            "task": {
                "create": lambda: True,
                "update": {"own": owns_task},
            },
        }

    or an explicit :class:`PermissionGroup` tree. With the default separator
    this yields the keys ``task:create`` and ``task:update:own``.
    """

    permissions_map: Any
    permission_string_separator: str = DEFAULT_SEPARATOR
    callback: AuthorizationCallbacks
    strict_route_permissions: bool = False

    @field_validator("permissions_map")
    @classmethod
    def _check_map(cls, value: Any) -> Any:
        if not isinstance(value, (Mapping, PermissionGroup)):
            raise ValueError("permissions_map must be a mapping of groups and predicates")
        return value

    @field_validator("permission_string_separator")
    @classmethod
    def _check_separator(cls, value: str) -> str:
        try:
            return validate_separator(value)
        except PermissionConfigurationError as exc:
            raise ValueError(str(exc)) from exc


def _coerce_options(options: AuthorizationOptions | Mapping[str, Any]) -> AuthorizationOptions:
    if isinstance(options, AuthorizationOptions):
        return options
    try:
        return AuthorizationOptions.model_validate(options)
    except ValidationError as exc:
        raise PermissionConfigurationError(f"Invalid authorization options: {exc}") from exc


def build_authorization_guard(
    options: AuthorizationOptions | Mapping[str, Any],
) -> AuthorizationGuard:
    """Validate ``options``, resolve the permission map and return a guard."""

    options = _coerce_options(options)
    table = resolve_permission_map(
        options.permissions_map,
        separator=options.permission_string_separator,
    )
    principal_callbacks = options.callback.principal
    return AuthorizationGuard(
        table=table,
        retrieve_principal=principal_callbacks.retrieve_from_request,
        get_permissions=principal_callbacks.get_permissions,
    )


def configure_authorization(
    app: FastAPI,
    options: AuthorizationOptions | Mapping[str, Any],
) -> AuthorizationGuard:
    """Install the authorization guard on ``app``.

    Call after the application's routers are included so the declared route
    requirements can be checked against the resolved permission table.
    """

    options = _coerce_options(options)
    guard = build_authorization_guard(options)
    validate_route_permissions(
        app.routes,
        guard.table,
        strict=options.strict_route_permissions,
    )
    setattr(app.state, GUARD_STATE_ATTRIBUTE, guard)
    logger.info(
        "authz.configured",
        extra=log_context(
            permission_count=len(guard.table),
            strict_route_permissions=options.strict_route_permissions,
        ),
    )
    return guard


__all__ = [
    "AuthorizationCallbacks",
    "AuthorizationOptions",
    "PrincipalCallbacks",
    "build_authorization_guard",
    "configure_authorization",
]
