"""Auth contracts and helpers shared across the API surface."""

from .errors import AuthenticationError, PermissionDeniedError
from .pipeline import authenticate_request, load_principal, principal_from_request
from .principal import AuthenticatedPrincipal

__all__ = [
    "AuthenticatedPrincipal",
    "AuthenticationError",
    "PermissionDeniedError",
    "authenticate_request",
    "load_principal",
    "principal_from_request",
]
