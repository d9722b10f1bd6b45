"""Error types raised by the authorization engine."""

from __future__ import annotations


class AuthorizationEngineError(Exception):
    """Base class for authorization engine failures."""


class PermissionConfigurationError(AuthorizationEngineError):
    """Raised when the permission map, options or route declarations are invalid.

    These errors are raised while the application is being assembled; a process
    that hits one must not start serving requests.
    """


class PermissionSpecError(PermissionConfigurationError):
    """Raised when a declared permission requirement cannot be parsed."""


class PermissionPredicateError(AuthorizationEngineError):
    """Raised when a permission predicate fails while being evaluated."""

    def __init__(self, permission_key: str) -> None:
        self.permission_key = permission_key
        super().__init__(f"Predicate for permission '{permission_key}' raised an exception")


__all__ = [
    "AuthorizationEngineError",
    "PermissionConfigurationError",
    "PermissionPredicateError",
    "PermissionSpecError",
]
