"""Permission requirement expressions and permission map node types.

Routes declare their requirements as plain data::

    "task:create"
    ("task:update:own", {"task_id": "task_id"})
    {"and": ["task:list:own", {"or": ["task:read:own", "task:read:others"]}]}

:func:`parse_permission_spec` turns such declarations into the frozen
expression nodes below once, when the route is declared.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, TypeAlias, Union

from .errors import PermissionSpecError

PermissionKey: TypeAlias = str
BindingMap: TypeAlias = Mapping[str, str]

# Predicates as written by the application (zero, one or two positional args).
Predicate: TypeAlias = Callable[..., bool | Awaitable[bool]]
# Predicates after resolution: always ``(principal, bound_parameters)``.
BoundPredicate: TypeAlias = Callable[[Any, Mapping[str, Any]], bool | Awaitable[bool]]

_AND = "and"
_OR = "or"

# ---------------------------------------------------------------------------
# Requirement expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PermissionLeaf:
    """Single permission key, optionally bound to request parameters."""

    key: PermissionKey
    bindings: BindingMap = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bindings", MappingProxyType(dict(self.bindings)))

    def __hash__(self) -> int:
        return hash((self.key, tuple(self.bindings.items())))

    def __str__(self) -> str:
        if not self.bindings:
            return self.key
        rendered = ", ".join(f"{arg}={param}" for arg, param in self.bindings.items())
        return f"{self.key}[{rendered}]"


@dataclass(frozen=True, slots=True)
class AllOf:
    """Conjunction: every child requirement must hold."""

    specs: tuple[PermissionSpec, ...]

    def __str__(self) -> str:
        return _render(self.specs, " AND ", empty="TRUE")


@dataclass(frozen=True, slots=True)
class AnyOf:
    """Disjunction: at least one child requirement must hold."""

    specs: tuple[PermissionSpec, ...]

    def __str__(self) -> str:
        return _render(self.specs, " OR ", empty="FALSE")


PermissionSpec: TypeAlias = Union[PermissionLeaf, AllOf, AnyOf]
RawPermissionSpec: TypeAlias = Union[
    str,
    Sequence[Any],
    Mapping[str, Any],
    PermissionLeaf,
    AllOf,
    AnyOf,
]


def _render(specs: Sequence[PermissionSpec], joiner: str, *, empty: str) -> str:
    if not specs:
        return empty
    parts = [f"({spec})" if isinstance(spec, (AllOf, AnyOf)) else str(spec) for spec in specs]
    return joiner.join(parts)


def parse_permission_spec(raw: RawPermissionSpec) -> PermissionSpec:
    """Parse a declarative permission requirement into expression nodes."""

    if isinstance(raw, (PermissionLeaf, AllOf, AnyOf)):
        return raw
    if isinstance(raw, str):
        return PermissionLeaf(key=_check_key(raw))
    if isinstance(raw, Mapping):
        return _parse_combinator(raw)
    if isinstance(raw, Sequence):
        return _parse_pair(raw)
    raise PermissionSpecError(
        f"Unsupported permission requirement of type {type(raw).__name__!s}: {raw!r}"
    )


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or not key.strip():
        raise PermissionSpecError(f"Permission key must be a non-empty string, got {key!r}")
    return key


def _parse_pair(raw: Sequence[Any]) -> PermissionLeaf:
    if len(raw) != 2 or not isinstance(raw[1], Mapping):
        raise PermissionSpecError(
            "A permission sequence must be a (key, binding_map) pair; "
            f"combine several requirements with {{'and': [...]}} instead: {raw!r}"
        )
    key = _check_key(raw[0])
    bindings: dict[str, str] = {}
    for argument, parameter in raw[1].items():
        if not isinstance(argument, str) or not argument:
            raise PermissionSpecError(
                f"Binding names for '{key}' must be non-empty strings, got {argument!r}"
            )
        if not isinstance(parameter, str) or not parameter:
            raise PermissionSpecError(
                f"Binding '{argument}' for '{key}' must name a request parameter, got {parameter!r}"
            )
        bindings[argument] = parameter
    return PermissionLeaf(key=key, bindings=bindings)


def _parse_combinator(raw: Mapping[str, Any]) -> PermissionSpec:
    if len(raw) != 1:
        raise PermissionSpecError(
            f"A permission combinator must have exactly one of 'and'/'or', got keys {sorted(raw)!r}"
        )
    ((operator, children),) = raw.items()
    if operator not in (_AND, _OR):
        raise PermissionSpecError(f"Unknown permission combinator {operator!r}")
    if isinstance(children, (str, bytes, Mapping)) or not isinstance(children, Sequence):
        raise PermissionSpecError(f"'{operator}' expects a list of requirements, got {children!r}")

    parsed = tuple(parse_permission_spec(child) for child in children)
    return AllOf(parsed) if operator == _AND else AnyOf(parsed)


def iter_leaves(spec: PermissionSpec) -> Iterator[PermissionLeaf]:
    """Yield every leaf of ``spec`` in declaration order."""

    if isinstance(spec, PermissionLeaf):
        yield spec
        return
    for child in spec.specs:
        yield from iter_leaves(child)


# ---------------------------------------------------------------------------
# Permission map nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PermissionRule:
    """Leaf of a permission map: the predicate deciding the dynamic outcome."""

    predicate: Predicate


@dataclass(frozen=True, slots=True)
class PermissionGroup:
    """Internal node of a permission map: named children."""

    children: Mapping[str, PermissionNode]


PermissionNode: TypeAlias = Union[PermissionGroup, PermissionRule]
# Nested ``dict`` form accepted wherever a map is expected.
PermissionsMap: TypeAlias = Mapping[str, Any]


__all__ = [
    "AllOf",
    "AnyOf",
    "BindingMap",
    "BoundPredicate",
    "PermissionGroup",
    "PermissionKey",
    "PermissionLeaf",
    "PermissionNode",
    "PermissionRule",
    "PermissionSpec",
    "PermissionsMap",
    "Predicate",
    "RawPermissionSpec",
    "iter_leaves",
    "parse_permission_spec",
]
