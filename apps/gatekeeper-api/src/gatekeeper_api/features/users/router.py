"""Routes for user accounts."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, status

from gatekeeper_api.core.authz import requires_permission
from gatekeeper_api.core.http.dependencies import (
    CurrentPrincipal,
    PermissionTableDep,
    get_users_service,
)

from .schemas import UserCreate, UserOut, UserSelfUpdate, UserUpdate
from .service import UsersService

router = APIRouter(prefix="/users", tags=["users"])

UsersServiceDep = Annotated[UsersService, Depends(get_users_service)]
USER_ID_PARAM = Annotated[UUID, Path(description="User identifier.")]

FORBIDDEN_RESPONSE = {status.HTTP_403_FORBIDDEN: {"description": "Permission requirement denied."}}


@router.get(
    "",
    response_model=list[UserOut],
    summary="List users",
    dependencies=[requires_permission("user:list")],
    responses=FORBIDDEN_RESPONSE,
)
async def list_users(service: UsersServiceDep) -> list[UserOut]:
    return await service.list_users()


@router.post(
    "",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user and grant permissions",
    dependencies=[requires_permission("user:create")],
    responses={
        **FORBIDDEN_RESPONSE,
        status.HTTP_409_CONFLICT: {"description": "Email already in use."},
    },
)
async def create_user(
    service: UsersServiceDep,
    table: PermissionTableDep,
    payload: UserCreate = Body(...),
) -> UserOut:
    return await service.create_user(payload=payload, known_permissions=table)


@router.get(
    "/me",
    response_model=UserOut,
    summary="Return the authenticated user",
    dependencies=[requires_permission("user:read:own")],
    responses=FORBIDDEN_RESPONSE,
)
async def read_me(principal: CurrentPrincipal, service: UsersServiceDep) -> UserOut:
    return await service.get_user(user_id=principal.user_id)


@router.patch(
    "/me",
    response_model=UserOut,
    summary="Update the authenticated user",
    dependencies=[requires_permission("user:update:own")],
    responses=FORBIDDEN_RESPONSE,
)
async def update_me(
    principal: CurrentPrincipal,
    service: UsersServiceDep,
    payload: UserSelfUpdate = Body(...),
) -> UserOut:
    return await service.update_self(user_id=principal.user_id, payload=payload)


@router.get(
    "/{user_id}",
    response_model=UserOut,
    summary="Retrieve another user",
    dependencies=[requires_permission(["user:read:others", {"user_id": "user_id"}])],
    responses={
        **FORBIDDEN_RESPONSE,
        status.HTTP_404_NOT_FOUND: {"description": "User not found."},
    },
)
async def get_user(user_id: USER_ID_PARAM, service: UsersServiceDep) -> UserOut:
    return await service.get_user(user_id=user_id)


@router.patch(
    "/{user_id}",
    response_model=UserOut,
    summary="Update another user",
    dependencies=[requires_permission(["user:update:others", {"user_id": "user_id"}])],
    responses={
        **FORBIDDEN_RESPONSE,
        status.HTTP_404_NOT_FOUND: {"description": "User not found."},
    },
)
async def update_user(
    user_id: USER_ID_PARAM,
    service: UsersServiceDep,
    table: PermissionTableDep,
    payload: UserUpdate = Body(...),
) -> UserOut:
    return await service.update_user(user_id=user_id, payload=payload, known_permissions=table)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete another user",
    dependencies=[requires_permission(["user:delete:others", {"user_id": "user_id"}])],
    responses={
        **FORBIDDEN_RESPONSE,
        status.HTTP_404_NOT_FOUND: {"description": "User not found."},
    },
)
async def delete_user(user_id: USER_ID_PARAM, service: UsersServiceDep) -> None:
    await service.delete_user(user_id=user_id)


__all__ = ["router"]
