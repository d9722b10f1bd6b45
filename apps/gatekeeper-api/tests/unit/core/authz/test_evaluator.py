"""Unit tests for permission expression evaluation."""

from __future__ import annotations

import asyncio
import logging
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from gatekeeper_api.core.authz import (
    EvaluationContext,
    PermissionEvaluator,
    PermissionPredicateError,
    parse_permission_spec,
    resolve_permission_map,
)

pytestmark = pytest.mark.asyncio

PRINCIPAL = SimpleNamespace(id=1, user_id=1)

SCENARIO_GRANTS = ["test:list", "test:read:own", "test:read:others", "test:update"]


def _scenario_evaluator() -> PermissionEvaluator:
    table = resolve_permission_map(
        {
            "test": {
                "read": {
                    "own": lambda: True,
                    "others": lambda: False,
                },
                "create": lambda: True,
                "update": lambda principal, params: principal.id == params["task_creator_id"],
            }
        }
    )
    return PermissionEvaluator(table)


async def _evaluate(
    evaluator: PermissionEvaluator,
    raw,
    *,
    granted=SCENARIO_GRANTS,
    params=None,
) -> bool:
    context = EvaluationContext(principal=PRINCIPAL, granted=granted, request_params=params or {})
    return await evaluator.evaluate(parse_permission_spec(raw), context)


async def test_scenario_outcomes() -> None:
    evaluator = _scenario_evaluator()

    assert await _evaluate(evaluator, "test:read:own") is True
    assert await _evaluate(evaluator, "test:read:others") is False
    # In the table but not granted.
    assert await _evaluate(evaluator, "test:create") is False
    assert await _evaluate(
        evaluator,
        ["test:update", {"task_creator_id": "creator_id"}],
        params={"creator_id": 1},
    ) is True
    assert await _evaluate(
        evaluator,
        ["test:update", {"task_creator_id": "creator_id"}],
        params={"creator_id": 2},
    ) is False
    assert await _evaluate(
        evaluator,
        {"and": ["test:list", {"or": ["test:read:own", "test:read:others"]}]},
    ) is True


async def test_key_missing_from_grants_and_table_is_denied() -> None:
    evaluator = _scenario_evaluator()

    assert await _evaluate(evaluator, "unknown:key") is False


async def test_granted_key_missing_from_table_falls_back_to_grant() -> None:
    evaluator = _scenario_evaluator()

    # test:list is granted but has no predicate.
    assert await _evaluate(evaluator, "test:list") is True


async def test_predicate_not_invoked_without_grant() -> None:
    predicate = Mock(return_value=True)
    evaluator = PermissionEvaluator(resolve_permission_map({"doc": {"edit": predicate}}))

    assert await _evaluate(evaluator, "doc:edit", granted=[]) is False
    predicate.assert_not_called()

    assert await _evaluate(evaluator, "doc:edit", granted=["doc:edit"]) is True
    assert predicate.call_count == 1


async def test_result_is_grant_and_predicate() -> None:
    evaluator = PermissionEvaluator(
        resolve_permission_map({"doc": {"yes": lambda: True, "no": lambda: False}})
    )
    granted = ["doc:yes", "doc:no"]

    assert await _evaluate(evaluator, "doc:yes", granted=granted) is True
    assert await _evaluate(evaluator, "doc:no", granted=granted) is False


async def test_empty_combinators() -> None:
    evaluator = _scenario_evaluator()

    assert await _evaluate(evaluator, {"and": []}) is True
    assert await _evaluate(evaluator, {"or": []}) is False


async def test_and_short_circuits_on_first_false() -> None:
    first = Mock(return_value=False)
    second = Mock(return_value=True)
    evaluator = PermissionEvaluator(resolve_permission_map({"x": {"a": first, "b": second}}))

    result = await _evaluate(evaluator, {"and": ["x:a", "x:b"]}, granted=["x:a", "x:b"])

    assert result is False
    assert first.call_count == 1
    second.assert_not_called()


async def test_or_short_circuits_on_first_true() -> None:
    first = Mock(return_value=True)
    second = Mock(return_value=True)
    evaluator = PermissionEvaluator(resolve_permission_map({"x": {"a": first, "b": second}}))

    result = await _evaluate(evaluator, {"or": ["x:a", "x:b"]}, granted=["x:a", "x:b"])

    assert result is True
    assert first.call_count == 1
    second.assert_not_called()


async def test_children_are_evaluated_in_declaration_order() -> None:
    order: list[str] = []

    async def slow(principal, params):
        await asyncio.sleep(0.01)
        order.append("slow")
        return False

    def fast(principal, params):
        order.append("fast")
        return False

    evaluator = PermissionEvaluator(resolve_permission_map({"x": {"slow": slow, "fast": fast}}))

    result = await _evaluate(evaluator, {"or": ["x:slow", "x:fast"]}, granted=["x:slow", "x:fast"])

    assert result is False
    assert order == ["slow", "fast"]


async def test_async_predicates_are_awaited() -> None:
    async def owns(principal, params):
        return params["owner"] == principal.id

    evaluator = PermissionEvaluator(resolve_permission_map({"doc": {"own": owns}}))
    spec = ["doc:own", {"owner": "owner_id"}]

    assert await _evaluate(evaluator, spec, granted=["doc:own"], params={"owner_id": 1}) is True
    assert await _evaluate(evaluator, spec, granted=["doc:own"], params={"owner_id": 7}) is False


async def test_bound_parameters_are_a_fresh_mapping_per_leaf() -> None:
    seen: list[dict] = []

    def capture(principal, params):
        seen.append(params)
        return True

    evaluator = PermissionEvaluator(resolve_permission_map({"doc": {"a": capture, "b": capture}}))
    spec = {"and": [["doc:a", {"first": "x"}], ["doc:b", {"second": "y"}]]}

    await _evaluate(evaluator, spec, granted=["doc:a", "doc:b"], params={"x": 1, "y": 2})

    assert seen == [{"first": 1}, {"second": 2}]
    assert seen[0] is not seen[1]


async def test_missing_request_parameter_denies_and_logs(caplog) -> None:
    predicate = Mock(return_value=True)
    evaluator = PermissionEvaluator(resolve_permission_map({"doc": {"own": predicate}}))

    with caplog.at_level(logging.WARNING, logger="gatekeeper_api.core.authz.evaluator"):
        result = await _evaluate(
            evaluator,
            ["doc:own", {"owner": "owner_id"}],
            granted=["doc:own"],
            params={"other": 1},
        )

    assert result is False
    predicate.assert_not_called()
    record = next(r for r in caplog.records if r.getMessage() == "authz.binding.missing")
    assert record.permission == "doc:own"
    assert record.request_parameter == "owner_id"


async def test_predicate_exception_is_wrapped() -> None:
    def explode(principal, params):
        raise RuntimeError("database down")

    evaluator = PermissionEvaluator(resolve_permission_map({"doc": {"own": explode}}))

    with pytest.raises(PermissionPredicateError) as excinfo:
        await _evaluate(evaluator, "doc:own", granted=["doc:own"])

    assert excinfo.value.permission_key == "doc:own"
    assert isinstance(excinfo.value.__cause__, RuntimeError)


async def test_cancellation_is_not_swallowed() -> None:
    async def cancelled(principal, params):
        raise asyncio.CancelledError

    evaluator = PermissionEvaluator(resolve_permission_map({"doc": {"own": cancelled}}))

    with pytest.raises(asyncio.CancelledError):
        await _evaluate(evaluator, "doc:own", granted=["doc:own"])


async def test_truthy_results_are_coerced_to_bool() -> None:
    evaluator = PermissionEvaluator(
        resolve_permission_map({"doc": {"truthy": lambda: "yes", "falsy": lambda: 0}})
    )
    granted = ["doc:truthy", "doc:falsy"]

    assert await _evaluate(evaluator, "doc:truthy", granted=granted) is True
    assert await _evaluate(evaluator, "doc:falsy", granted=granted) is False
