"""Shared auth/permission error types."""


class AuthenticationError(Exception):
    """Raised when a request cannot be authenticated."""


class PermissionDeniedError(Exception):
    """Raised when a principal does not satisfy a route's permission requirement."""

    def __init__(self, requirement: str, *, reason: str = "not_permitted") -> None:
        self.requirement = requirement
        self.reason = reason
        super().__init__(f"Permission requirement '{requirement}' denied ({reason})")
