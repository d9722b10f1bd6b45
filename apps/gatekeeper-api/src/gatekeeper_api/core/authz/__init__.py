"""Declarative permission authorization engine."""

from .errors import (
    AuthorizationEngineError,
    PermissionConfigurationError,
    PermissionPredicateError,
    PermissionSpecError,
)
from .evaluator import EvaluationContext, PermissionEvaluator
from .guard import (
    GUARD_STATE_ATTRIBUTE,
    AuthorizationGuard,
    get_authorization_guard,
    requires_permission,
)
from .options import (
    AuthorizationCallbacks,
    AuthorizationOptions,
    PrincipalCallbacks,
    build_authorization_guard,
    configure_authorization,
)
from .resolver import DEFAULT_SEPARATOR, PermissionTable, resolve_permission_map
from .routes import (
    RoutePermissions,
    collect_route_permissions,
    declared_permissions,
    iter_api_routes,
    validate_route_permissions,
)
from .types import (
    AllOf,
    AnyOf,
    PermissionGroup,
    PermissionLeaf,
    PermissionRule,
    PermissionSpec,
    PermissionsMap,
    iter_leaves,
    parse_permission_spec,
)
from .validators import validate_permission_keys

__all__ = [
    "AllOf",
    "AnyOf",
    "AuthorizationCallbacks",
    "AuthorizationEngineError",
    "AuthorizationGuard",
    "AuthorizationOptions",
    "DEFAULT_SEPARATOR",
    "EvaluationContext",
    "GUARD_STATE_ATTRIBUTE",
    "PermissionConfigurationError",
    "PermissionEvaluator",
    "PermissionGroup",
    "PermissionLeaf",
    "PermissionPredicateError",
    "PermissionRule",
    "PermissionSpec",
    "PermissionSpecError",
    "PermissionTable",
    "PermissionsMap",
    "PrincipalCallbacks",
    "RoutePermissions",
    "build_authorization_guard",
    "collect_route_permissions",
    "configure_authorization",
    "declared_permissions",
    "get_authorization_guard",
    "iter_api_routes",
    "iter_leaves",
    "parse_permission_spec",
    "requires_permission",
    "resolve_permission_map",
    "validate_permission_keys",
    "validate_route_permissions",
]
