"""Request-time authorization guard and the FastAPI dependency that invokes it."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any, TypeVar

from fastapi import Depends, Request
from fastapi.params import Depends as DependsParam

from gatekeeper_api.common.logging import log_context

from ..auth.errors import PermissionDeniedError
from .errors import PermissionConfigurationError
from .evaluator import EvaluationContext, PermissionEvaluator
from .resolver import PermissionTable
from .types import PermissionSpec, RawPermissionSpec, parse_permission_spec

logger = logging.getLogger(__name__)

T = TypeVar("T")

PrincipalRetriever = Callable[[Any], Any]
PermissionsRetriever = Callable[[Any], Iterable[str] | Awaitable[Iterable[str]]]

GUARD_STATE_ATTRIBUTE = "authorization_guard"
REQUIREMENT_ATTRIBUTE = "__permission_requirement__"

REASON_NO_PRINCIPAL = "no_principal"
REASON_NOT_PERMITTED = "not_permitted"


async def _resolve(value: T | Awaitable[T]) -> T:
    if inspect.isawaitable(value):
        return await value
    return value


def _request_parameters(request: Any) -> Mapping[str, Any]:
    return getattr(request, "path_params", None) or {}


class AuthorizationGuard:
    """Decide whether the principal behind a request satisfies a requirement."""

    def __init__(
        self,
        *,
        table: PermissionTable,
        retrieve_principal: PrincipalRetriever,
        get_permissions: PermissionsRetriever,
    ) -> None:
        self._evaluator = PermissionEvaluator(table)
        self._retrieve_principal = retrieve_principal
        self._get_permissions = get_permissions

    @property
    def table(self) -> PermissionTable:
        return self._evaluator.table

    async def authorize(self, spec: PermissionSpec | None, request: Any) -> bool:
        """Return whether ``request`` may proceed under ``spec``."""

        return (await self._decide(spec, request)) is None

    async def enforce(self, spec: PermissionSpec | None, request: Any) -> None:
        """Raise :class:`PermissionDeniedError` unless ``request`` satisfies ``spec``."""

        reason = await self._decide(spec, request)
        if reason is not None:
            raise PermissionDeniedError(str(spec), reason=reason)

    async def _decide(self, spec: PermissionSpec | None, request: Any) -> str | None:
        if spec is None:
            return None

        principal = await _resolve(self._retrieve_principal(request))
        if principal is None:
            logger.info(
                "authz.deny",
                extra=log_context(requirement=str(spec), reason=REASON_NO_PRINCIPAL),
            )
            return REASON_NO_PRINCIPAL

        granted = frozenset(await _resolve(self._get_permissions(principal)) or ())
        context = EvaluationContext(
            principal=principal,
            granted=granted,
            request_params=_request_parameters(request),
        )
        allowed = await self._evaluator.evaluate(spec, context)

        user_id = getattr(principal, "user_id", None)
        extra = log_context(
            requirement=str(spec),
            user_id=str(user_id) if user_id is not None else None,
        )
        if not allowed:
            logger.info("authz.deny", extra={**extra, "reason": REASON_NOT_PERMITTED})
            return REASON_NOT_PERMITTED
        logger.debug("authz.allow", extra=extra)
        return None


def get_authorization_guard(request: Request) -> AuthorizationGuard:
    """Return the guard configured on the application serving ``request``."""

    guard = getattr(request.app.state, GUARD_STATE_ATTRIBUTE, None)
    if guard is None:
        raise PermissionConfigurationError(
            "Authorization is not configured; call configure_authorization() on the app"
        )
    return guard


def requires_permission(spec: RawPermissionSpec) -> DependsParam:
    """Declare a permission requirement for a route or router.

    Usage::

        @router.get("/tasks/{task_id}", dependencies=[
            requires_permission(["task:read:own", {"task_id": "task_id"}]),
        ])

    Requirements declared on a router and on its routes are all enforced.
    """

    parsed = parse_permission_spec(spec)

    async def dependency(request: Request) -> None:
        guard = get_authorization_guard(request)
        await guard.enforce(parsed, request)

    setattr(dependency, REQUIREMENT_ATTRIBUTE, parsed)
    return Depends(dependency)


__all__ = [
    "AuthorizationGuard",
    "PermissionsRetriever",
    "PrincipalRetriever",
    "get_authorization_guard",
    "requires_permission",
]
