"""Compile a hierarchical permission map into a flat permission table."""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from gatekeeper_api.common.logging import log_context

from .errors import PermissionConfigurationError
from .types import (
    BoundPredicate,
    PermissionGroup,
    PermissionNode,
    PermissionRule,
    PermissionsMap,
    Predicate,
)

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = ":"

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class PermissionTable(Mapping[str, BoundPredicate]):
    """Immutable lookup from permission key to its normalized predicate."""

    __slots__ = ("_entries", "_separator")

    def __init__(self, entries: Mapping[str, BoundPredicate], *, separator: str) -> None:
        self._entries: Mapping[str, BoundPredicate] = MappingProxyType(dict(entries))
        self._separator = separator

    @property
    def separator(self) -> str:
        return self._separator

    def permissions(self) -> list[str]:
        """Return every resolvable permission key in map declaration order."""

        return list(self._entries)

    def __getitem__(self, key: str) -> BoundPredicate:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"PermissionTable(separator={self._separator!r}, keys={list(self._entries)!r})"


def resolve_permission_map(
    permissions_map: PermissionsMap | PermissionGroup,
    separator: str = DEFAULT_SEPARATOR,
) -> PermissionTable:
    """Flatten ``permissions_map`` into a :class:`PermissionTable`.

    Keys are the group names from the root to each predicate joined with
    ``separator``. Every structural problem (group names containing the
    separator, empty groups, non-callable leaves, duplicate keys, predicates
    that cannot take ``(principal, bound)``) raises
    :class:`PermissionConfigurationError`.
    """

    validate_separator(separator)
    root = as_permission_node(permissions_map, path=())
    if not isinstance(root, PermissionGroup):
        raise PermissionConfigurationError("The permission map root must be a group, not a predicate")

    entries: dict[str, BoundPredicate] = {}
    _collect(root, path=(), separator=separator, entries=entries, ancestors=frozenset())

    logger.info(
        "authz.table.resolved",
        extra=log_context(permission_count=len(entries), separator=separator),
    )
    return PermissionTable(entries, separator=separator)


def validate_separator(separator: Any) -> str:
    if not isinstance(separator, str) or len(separator) != 1 or separator.isspace():
        raise PermissionConfigurationError(
            f"The permission string separator must be a single non-blank character, got {separator!r}"
        )
    return separator


def as_permission_node(value: Any, *, path: tuple[str, ...]) -> PermissionNode:
    """Coerce the nested-``dict`` form into explicit map nodes."""

    if isinstance(value, PermissionRule):
        if not callable(value.predicate):
            raise PermissionConfigurationError(
                f"'{_display(path)}' holds a rule whose predicate is not callable"
            )
        return value
    if isinstance(value, PermissionGroup):
        if not isinstance(value.children, Mapping):
            raise PermissionConfigurationError(
                f"'{_display(path)}' holds a group whose children are not a mapping"
            )
        return value
    if isinstance(value, Mapping):
        return PermissionGroup(children=value)
    if callable(value):
        return PermissionRule(predicate=value)
    raise PermissionConfigurationError(
        f"'{_display(path)}' resolves to {type(value).__name__}, expected a predicate or a group"
    )


def _collect(
    node: PermissionNode,
    *,
    path: tuple[str, ...],
    separator: str,
    entries: dict[str, BoundPredicate],
    ancestors: frozenset[int],
) -> None:
    if isinstance(node, PermissionRule):
        key = separator.join(path)
        if key in entries:
            raise PermissionConfigurationError(f"Duplicate permission key '{key}'")
        entries[key] = normalize_predicate(node.predicate, key=key)
        return

    marker = id(node.children)
    if marker in ancestors:
        raise PermissionConfigurationError(f"'{_display(path)}' contains itself")
    if not node.children:
        if path:
            raise PermissionConfigurationError(
                f"'{separator.join(path)}' is a group without any permission predicates"
            )
        return

    for name, child in node.children.items():
        _check_segment(name, separator=separator, path=path)
        child_path = (*path, name)
        _collect(
            as_permission_node(child, path=child_path),
            path=child_path,
            separator=separator,
            entries=entries,
            ancestors=ancestors | {marker},
        )


def _check_segment(name: Any, *, separator: str, path: tuple[str, ...]) -> None:
    if not isinstance(name, str) or not name:
        raise PermissionConfigurationError(
            f"Group names must be non-empty strings; found {name!r} under '{_display(path)}'"
        )
    if separator in name:
        raise PermissionConfigurationError(
            f"Group name {name!r} under '{_display(path)}' contains the separator {separator!r}"
        )


def _display(path: tuple[str, ...]) -> str:
    return "/".join(path) or "<root>"


def normalize_predicate(predicate: Predicate, *, key: str) -> BoundPredicate:
    """Return ``predicate`` adapted to the ``(principal, bound)`` call shape."""

    try:
        signature = inspect.signature(predicate)
    except (TypeError, ValueError):
        # No introspectable signature (some builtins); assume the full shape.
        return predicate

    parameters = list(signature.parameters.values())
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in parameters):
        return predicate

    required_keyword_only = [
        p.name
        for p in parameters
        if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
    ]
    if required_keyword_only:
        raise PermissionConfigurationError(
            f"Predicate for '{key}' has required keyword-only parameters: "
            + ", ".join(required_keyword_only)
        )

    positional = [p for p in parameters if p.kind in _POSITIONAL_KINDS]
    required = [p for p in positional if p.default is inspect.Parameter.empty]
    if len(required) > 2:
        raise PermissionConfigurationError(
            f"Predicate for '{key}' requires {len(required)} arguments; "
            "predicates take at most (principal, bound_parameters)"
        )

    arity = min(len(positional), 2)
    if arity == 2:
        return predicate
    if arity == 1:
        return _principal_only(predicate)
    return _no_arguments(predicate)


def _principal_only(predicate: Predicate) -> BoundPredicate:
    @functools.wraps(predicate)
    def call(principal: Any, _bound: Mapping[str, Any]) -> Any:
        return predicate(principal)

    return call


def _no_arguments(predicate: Predicate) -> BoundPredicate:
    @functools.wraps(predicate)
    def call(_principal: Any, _bound: Mapping[str, Any]) -> Any:
        return predicate()

    return call


__all__ = [
    "DEFAULT_SEPARATOR",
    "PermissionTable",
    "as_permission_node",
    "normalize_predicate",
    "resolve_permission_map",
    "validate_separator",
]
