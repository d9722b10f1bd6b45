"""Inspect and validate the permission requirements declared on routes."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from fastapi.dependencies.models import Dependant
from fastapi.routing import APIRoute, RouteContext, iter_route_contexts
from starlette.routing import BaseRoute

from gatekeeper_api.common.logging import log_context

from .errors import PermissionConfigurationError
from .guard import REQUIREMENT_ATTRIBUTE
from .resolver import PermissionTable
from .types import PermissionSpec, iter_leaves

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RoutePermissions:
    """Requirements declared on one route (router-level first)."""

    path: str
    methods: tuple[str, ...]
    name: str
    specs: tuple[PermissionSpec, ...]


def declared_permissions(route: APIRoute | RouteContext) -> list[PermissionSpec]:
    """Return every permission requirement attached to ``route``.

    Includes requirements inherited from routers and from ``include_router``
    dependencies when ``route`` is an effective route context.
    """

    return list(_walk(route.dependant))


def _walk(dependant: Dependant) -> Iterator[PermissionSpec]:
    for dependency in dependant.dependencies:
        spec = getattr(dependency.call, REQUIREMENT_ATTRIBUTE, None)
        if spec is not None:
            yield spec
        yield from _walk(dependency)


def iter_api_routes(routes: Iterable[BaseRoute]) -> Iterator[RouteContext]:
    """Yield every API route, descending into included routers.

    ``app.routes`` holds one entry per ``include_router`` call; each yielded
    context carries the full path and the dependencies merged along the way.
    """

    for context in iter_route_contexts(list(routes)):
        if isinstance(context.original_route, APIRoute):
            yield context


def collect_route_permissions(routes: Iterable[BaseRoute]) -> list[RoutePermissions]:
    """Summarize the declared requirements of every API route."""

    collected: list[RoutePermissions] = []
    for route in iter_api_routes(routes):
        collected.append(
            RoutePermissions(
                path=route.path,
                methods=tuple(sorted(route.methods or ())),
                name=route.name,
                specs=tuple(declared_permissions(route)),
            )
        )
    return collected


def validate_route_permissions(
    routes: Iterable[BaseRoute],
    table: PermissionTable,
    *,
    strict: bool = False,
) -> list[str]:
    """Check declared requirements against the table and the route paths.

    A leaf key that the table does not know is most often a typo (it can only
    ever be satisfied by a static grant), and a binding that names a path
    parameter the route does not have can never be bound. Problems are
    returned and logged; with ``strict`` they raise instead.
    """

    problems: list[str] = []
    for route in iter_api_routes(routes):
        path_parameters = set(route.param_convertors)
        for spec in declared_permissions(route):
            for leaf in iter_leaves(spec):
                if leaf.key not in table:
                    problems.append(f"{route.path}: unknown permission '{leaf.key}'")
                    logger.warning(
                        "authz.route.unknown_permission",
                        extra=log_context(path=route.path, permission=leaf.key),
                    )
                for argument, parameter in leaf.bindings.items():
                    if parameter not in path_parameters:
                        problems.append(
                            f"{route.path}: '{leaf.key}' binds '{argument}' to missing "
                            f"path parameter '{parameter}'"
                        )
                        logger.warning(
                            "authz.route.unbound_parameter",
                            extra=log_context(
                                path=route.path,
                                permission=leaf.key,
                                request_parameter=parameter,
                            ),
                        )

    if problems and strict:
        raise PermissionConfigurationError(
            "Invalid route permission declarations:\n" + "\n".join(problems)
        )
    return problems


__all__ = [
    "RoutePermissions",
    "collect_route_permissions",
    "declared_permissions",
    "iter_api_routes",
    "validate_route_permissions",
]
