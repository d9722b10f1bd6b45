"""Evaluate permission requirement expressions against a principal."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from typing import Any

from gatekeeper_api.common.logging import log_context

from .errors import PermissionPredicateError
from .resolver import PermissionTable
from .types import AllOf, AnyOf, PermissionLeaf, PermissionSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EvaluationContext:
    """Per-request inputs to an evaluation."""

    principal: Any
    granted: Collection[str]
    request_params: Mapping[str, Any] = field(default_factory=dict)


class _UnboundParameter(LookupError):
    def __init__(self, argument: str, parameter: str) -> None:
        self.argument = argument
        self.parameter = parameter
        super().__init__(parameter)


class PermissionEvaluator:
    """Recursive evaluator over :mod:`gatekeeper_api.core.authz.types` nodes.

    Children of ``AllOf``/``AnyOf`` are awaited one after another in
    declaration order and evaluation stops as soon as the outcome is known, so
    predicates behind a decided branch are never invoked.
    """

    def __init__(self, table: PermissionTable) -> None:
        self._table = table

    @property
    def table(self) -> PermissionTable:
        return self._table

    async def evaluate(self, spec: PermissionSpec, context: EvaluationContext) -> bool:
        if isinstance(spec, PermissionLeaf):
            return await self._evaluate_leaf(spec, context)
        if isinstance(spec, AllOf):
            for child in spec.specs:
                if not await self.evaluate(child, context):
                    return False
            return True
        if isinstance(spec, AnyOf):
            for child in spec.specs:
                if await self.evaluate(child, context):
                    return True
            return False
        raise TypeError(f"Unsupported permission expression: {spec!r}")

    async def _evaluate_leaf(self, leaf: PermissionLeaf, context: EvaluationContext) -> bool:
        if leaf.key not in context.granted:
            return False

        predicate = self._table.get(leaf.key)
        if predicate is None:
            return True

        try:
            bound = _bind_parameters(leaf, context.request_params)
        except _UnboundParameter as exc:
            logger.warning(
                "authz.binding.missing",
                extra=log_context(
                    permission=leaf.key,
                    argument=exc.argument,
                    request_parameter=exc.parameter,
                ),
            )
            return False

        try:
            result = predicate(context.principal, bound)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            logger.error(
                "authz.predicate.error",
                extra=log_context(permission=leaf.key, exception_type=type(exc).__name__),
            )
            raise PermissionPredicateError(leaf.key) from exc
        return bool(result)


def _bind_parameters(leaf: PermissionLeaf, request_params: Mapping[str, Any]) -> dict[str, Any]:
    bound: dict[str, Any] = {}
    for argument, parameter in leaf.bindings.items():
        if parameter not in request_params:
            raise _UnboundParameter(argument, parameter)
        bound[argument] = request_params[parameter]
    return bound


__all__ = ["EvaluationContext", "PermissionEvaluator"]
