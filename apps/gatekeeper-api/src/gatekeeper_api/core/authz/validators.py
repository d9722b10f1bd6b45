"""Validation of permission keys supplied as data (e.g. user grants)."""

from __future__ import annotations

from collections.abc import Collection, Iterable


def invalid_permission_message(permission: str) -> str:
    return f"Invalid permission '{permission}' provided."


def validate_permission_keys(values: Iterable[str], known: Collection[str]) -> list[str]:
    """Return ``values`` de-duplicated in order, rejecting unknown keys.

    Raises :class:`ValueError` for the first value that is not in ``known`` so
    the error surfaces as a regular pydantic validation error when called from
    a validator.
    """

    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value not in known:
            raise ValueError(invalid_permission_message(value))
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


__all__ = ["invalid_permission_message", "validate_permission_keys"]
