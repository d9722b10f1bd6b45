"""Unit tests for permission requirement parsing and rendering."""

from __future__ import annotations

import pytest

from gatekeeper_api.core.authz import (
    AllOf,
    AnyOf,
    PermissionLeaf,
    PermissionSpecError,
    iter_leaves,
    parse_permission_spec,
)


def test_string_parses_to_leaf_without_bindings() -> None:
    spec = parse_permission_spec("task:create")

    assert spec == PermissionLeaf("task:create")
    assert dict(spec.bindings) == {}


def test_pair_parses_to_bound_leaf() -> None:
    for raw in (
        ("task:update", {"task_creator_id": "creator_id"}),
        ["task:update", {"task_creator_id": "creator_id"}],
    ):
        spec = parse_permission_spec(raw)
        assert isinstance(spec, PermissionLeaf)
        assert spec.key == "task:update"
        assert dict(spec.bindings) == {"task_creator_id": "creator_id"}


def test_combinators_nest() -> None:
    spec = parse_permission_spec(
        {"and": ["test:list", {"or": ["test:read:own", "test:read:others"]}]}
    )

    assert spec == AllOf(
        (
            PermissionLeaf("test:list"),
            AnyOf((PermissionLeaf("test:read:own"), PermissionLeaf("test:read:others"))),
        )
    )
    assert [leaf.key for leaf in iter_leaves(spec)] == [
        "test:list",
        "test:read:own",
        "test:read:others",
    ]


def test_rendering_is_readable() -> None:
    spec = parse_permission_spec(
        {"or": [["task:read:own", {"task_id": "task_id"}], {"and": ["a:b", "c:d"]}]}
    )

    assert str(spec) == "task:read:own[task_id=task_id] OR (a:b AND c:d)"
    assert str(parse_permission_spec({"and": []})) == "TRUE"
    assert str(parse_permission_spec({"or": []})) == "FALSE"


def test_bindings_cannot_be_mutated() -> None:
    leaf = parse_permission_spec(["task:update", {"task_id": "id"}])

    with pytest.raises(TypeError):
        leaf.bindings["task_id"] = "other"  # type: ignore[index]


def test_parsed_specs_are_hashable() -> None:
    first = parse_permission_spec(["task:update", {"task_id": "id"}])
    second = parse_permission_spec(["task:update", {"task_id": "id"}])

    assert hash(first) == hash(second)
    assert {first, second, parse_permission_spec("task:list")} == {
        PermissionLeaf("task:update", {"task_id": "id"}),
        PermissionLeaf("task:list"),
    }
    assert hash(parse_permission_spec({"and": ["task:list", first]})) is not None


def test_already_parsed_specs_pass_through() -> None:
    leaf = PermissionLeaf("task:create")

    assert parse_permission_spec(leaf) is leaf


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        42,
        None,
        ("task:update",),
        ("task:update", {"a": "b"}, {"c": "d"}),
        ("task:update", "creator_id"),
        ("task:update", {"": "creator_id"}),
        ("task:update", {"task_id": ""}),
        {"and": ["a"], "or": ["b"]},
        {"xor": ["a", "b"]},
        {"and": "a"},
        {"or": {"a": "b"}},
        {"and": [42]},
    ],
)
def test_malformed_declarations_are_rejected(raw) -> None:
    with pytest.raises(PermissionSpecError):
        parse_permission_spec(raw)
