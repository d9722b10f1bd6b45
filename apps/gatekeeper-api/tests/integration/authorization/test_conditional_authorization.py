"""End-to-end behaviour of permission requirements on a small FastAPI app.

The app below uses an in-memory principal lookup instead of the database so
every engine rule can be exercised through real HTTP requests.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from types import SimpleNamespace
from unittest.mock import Mock

import pytest
import pytest_asyncio
from fastapi import APIRouter, FastAPI
from httpx import ASGITransport, AsyncClient

from gatekeeper_api.common.exceptions import register_exception_handlers
from gatekeeper_api.core.authz import configure_authorization, requires_permission

pytestmark = pytest.mark.asyncio

PRINCIPALS = {
    "1": SimpleNamespace(
        user_id=1,
        permissions=["test:list", "test:read:own", "test:read:others", "test:update"],
    ),
    "2": SimpleNamespace(user_id=2, permissions=["test:create"]),
}


def build_app(create_predicate: Mock) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    router = APIRouter(prefix="/tests")

    @router.get("/own", dependencies=[requires_permission("test:read:own")])
    async def read_own() -> dict:
        return {"ok": True}

    @router.get("/others", dependencies=[requires_permission("test:read:others")])
    async def read_others() -> dict:
        return {"ok": True}

    @router.post("", dependencies=[requires_permission("test:create")])
    async def create() -> dict:
        return {"ok": True}

    @router.put(
        "/{creator_id}",
        dependencies=[requires_permission(("test:update", {"task_creator_id": "creator_id"}))],
    )
    async def update(creator_id: int) -> dict:
        return {"creator_id": creator_id}

    @router.get(
        "",
        dependencies=[
            requires_permission(
                {"and": ["test:list", {"or": ["test:read:own", "test:read:others"]}]}
            )
        ],
    )
    async def list_all() -> dict:
        return {"ok": True}

    @router.get("/broken", dependencies=[requires_permission("test:broken")])
    async def broken() -> dict:
        return {"ok": True}

    @router.get("/open")
    async def open_route() -> dict:
        return {"ok": True}

    guarded = APIRouter(prefix="/guarded", dependencies=[requires_permission("test:list")])

    @guarded.get("/both", dependencies=[requires_permission("test:create")])
    async def both() -> dict:
        return {"ok": True}

    app.include_router(router)
    app.include_router(guarded)

    def explode():
        raise RuntimeError("predicate failure")

    configure_authorization(
        app,
        {
            "permissions_map": {
                "test": {
                    "read": {"own": lambda: True, "others": lambda: False},
                    "create": create_predicate,
                    "update": lambda principal, params: (
                        principal.user_id == int(params["task_creator_id"])
                    ),
                    "broken": explode,
                }
            },
            "strict_route_permissions": True,
            "callback": {
                "principal": {
                    "retrieve_from_request": lambda request: PRINCIPALS.get(
                        request.headers.get("x-user", "")
                    ),
                    "get_permissions": lambda principal: principal.permissions,
                }
            },
        },
    )
    return app


@pytest.fixture()
def create_predicate() -> Mock:
    return Mock(return_value=True)


@pytest_asyncio.fixture()
async def client(create_predicate: Mock) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=build_app(create_predicate), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


AS_ONE = {"x-user": "1"}
AS_TWO = {"x-user": "2"}


async def test_granted_predicate_true_allows(client: AsyncClient) -> None:
    response = await client.get("/tests/own", headers=AS_ONE)

    assert response.status_code == 200


async def test_granted_predicate_false_denies(client: AsyncClient) -> None:
    response = await client.get("/tests/others", headers=AS_ONE)

    assert response.status_code == 403
    assert response.json()["detail"]["requirement"] == "test:read:others"


async def test_not_granted_never_invokes_predicate(
    client: AsyncClient, create_predicate: Mock
) -> None:
    response = await client.post("/tests", headers=AS_ONE)

    assert response.status_code == 403
    create_predicate.assert_not_called()

    response = await client.post("/tests", headers=AS_TWO)
    assert response.status_code == 200
    assert create_predicate.call_count == 1


async def test_bound_path_parameter_reaches_predicate(client: AsyncClient) -> None:
    assert (await client.put("/tests/1", headers=AS_ONE)).status_code == 200
    assert (await client.put("/tests/2", headers=AS_ONE)).status_code == 403


async def test_nested_combinators(client: AsyncClient) -> None:
    assert (await client.get("/tests", headers=AS_ONE)).status_code == 200
    assert (await client.get("/tests", headers=AS_TWO)).status_code == 403


async def test_missing_principal_is_forbidden_not_an_error(client: AsyncClient) -> None:
    response = await client.get("/tests/own")

    assert response.status_code == 403
    assert response.json()["detail"]["reason"] == "no_principal"


async def test_unguarded_route_is_open(client: AsyncClient) -> None:
    assert (await client.get("/tests/open")).status_code == 200


async def test_router_and_route_requirements_are_both_enforced(client: AsyncClient) -> None:
    # Principal 1 holds test:list but not test:create; principal 2 the opposite.
    assert (await client.get("/guarded/both", headers=AS_ONE)).status_code == 403
    assert (await client.get("/guarded/both", headers=AS_TWO)).status_code == 403


async def test_predicate_failure_is_a_server_error(client: AsyncClient) -> None:
    PRINCIPALS["1"].permissions.append("test:broken")
    try:
        response = await client.get("/tests/broken", headers=AS_ONE)
    finally:
        PRINCIPALS["1"].permissions.remove("test:broken")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
