"""The application's permission map and its predicates."""

from __future__ import annotations

from uuid import uuid4

from gatekeeper_api.app.permissions import create_permissions_map, targets_other_user
from gatekeeper_api.core.auth import AuthenticatedPrincipal
from gatekeeper_api.core.authz import resolve_permission_map
from gatekeeper_api.db import Database


def _principal() -> AuthenticatedPrincipal:
    return AuthenticatedPrincipal(user_id=uuid4(), email="p@example.com")


def test_map_resolves_to_expected_keys() -> None:
    table = resolve_permission_map(create_permissions_map(Database()))

    assert set(table) == {
        "user:list",
        "user:create",
        "user:read:own",
        "user:read:others",
        "user:update:own",
        "user:update:others",
        "user:delete:others",
        "task:list:own",
        "task:create",
        "task:read:own",
        "task:read:others",
        "task:update:own",
        "task:delete:own",
        "task:delete:others",
        "permission:list",
    }


def test_targets_other_user() -> None:
    principal = _principal()

    assert targets_other_user(principal, {"user_id": str(uuid4())}) is True
    assert targets_other_user(principal, {"user_id": str(principal.user_id)}) is False
    assert targets_other_user(principal, {"user_id": "not-a-uuid"}) is False
    assert targets_other_user(principal, {}) is False
