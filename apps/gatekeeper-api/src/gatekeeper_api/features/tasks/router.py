"""Routes for tasks.

Owners act on their own tasks through the ``task:*:own`` permissions, whose
predicates look the task up by the ``task_id`` path parameter. Holders of
``task:read:others`` or ``task:delete:others`` may act on any task.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, status

from gatekeeper_api.core.authz import requires_permission
from gatekeeper_api.core.http.dependencies import CurrentPrincipal, get_tasks_service

from .schemas import TaskCreate, TaskOut, TaskUpdate
from .service import TasksService

router = APIRouter(prefix="/tasks", tags=["tasks"])

TasksServiceDep = Annotated[TasksService, Depends(get_tasks_service)]
TASK_ID_PARAM = Annotated[UUID, Path(description="Task identifier.")]

OWN_TASK_BINDING = {"task_id": "task_id"}

FORBIDDEN_RESPONSE = {status.HTTP_403_FORBIDDEN: {"description": "Permission requirement denied."}}
NOT_FOUND_RESPONSE = {status.HTTP_404_NOT_FOUND: {"description": "Task not found."}}


@router.get(
    "",
    response_model=list[TaskOut],
    summary="List the authenticated user's tasks",
    dependencies=[requires_permission("task:list:own")],
    responses=FORBIDDEN_RESPONSE,
)
async def list_tasks(principal: CurrentPrincipal, service: TasksServiceDep) -> list[TaskOut]:
    return await service.list_tasks(owner_id=principal.user_id)


@router.post(
    "",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task owned by the authenticated user",
    dependencies=[requires_permission("task:create")],
    responses=FORBIDDEN_RESPONSE,
)
async def create_task(
    principal: CurrentPrincipal,
    service: TasksServiceDep,
    payload: TaskCreate = Body(...),
) -> TaskOut:
    return await service.create_task(owner_id=principal.user_id, payload=payload)


@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Retrieve a task",
    dependencies=[
        requires_permission(
            {"or": [["task:read:own", OWN_TASK_BINDING], "task:read:others"]}
        )
    ],
    responses={**FORBIDDEN_RESPONSE, **NOT_FOUND_RESPONSE},
)
async def get_task(task_id: TASK_ID_PARAM, service: TasksServiceDep) -> TaskOut:
    return await service.get_task(task_id=task_id)


@router.patch(
    "/{task_id}",
    response_model=TaskOut,
    summary="Update one of the authenticated user's tasks",
    dependencies=[requires_permission(["task:update:own", OWN_TASK_BINDING])],
    responses={**FORBIDDEN_RESPONSE, **NOT_FOUND_RESPONSE},
)
async def update_task(
    task_id: TASK_ID_PARAM,
    service: TasksServiceDep,
    payload: TaskUpdate = Body(...),
) -> TaskOut:
    return await service.update_task(task_id=task_id, payload=payload)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a task",
    dependencies=[
        requires_permission(
            {"or": [["task:delete:own", OWN_TASK_BINDING], "task:delete:others"]}
        )
    ],
    responses={**FORBIDDEN_RESPONSE, **NOT_FOUND_RESPONSE},
)
async def delete_task(task_id: TASK_ID_PARAM, service: TasksServiceDep) -> None:
    await service.delete_task(task_id=task_id)


__all__ = ["router"]
