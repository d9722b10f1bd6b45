"""Business logic for task operations."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper_api.common.logging import log_context
from gatekeeper_api.models import Task

from .repository import TasksRepository
from .schemas import TaskCreate, TaskOut, TaskUpdate

logger = logging.getLogger(__name__)


class TasksService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._repo = TasksRepository(session)

    async def list_tasks(self, *, owner_id: UUID) -> list[TaskOut]:
        tasks = await self._repo.list_for_owner(owner_id)
        return [TaskOut.model_validate(task) for task in tasks]

    async def get_task(self, *, task_id: UUID) -> TaskOut:
        return TaskOut.model_validate(await self._require(task_id))

    async def create_task(self, *, owner_id: UUID, payload: TaskCreate) -> TaskOut:
        task = await self._repo.create(
            owner_id=owner_id,
            title=payload.title,
            description=payload.description,
        )
        logger.info(
            "tasks.create.success",
            extra=log_context(task_id=str(task.id), user_id=str(owner_id)),
        )
        return TaskOut.model_validate(task)

    async def update_task(self, *, task_id: UUID, payload: TaskUpdate) -> TaskOut:
        task = await self._require(task_id)
        changes = payload.model_dump(exclude_unset=True)
        if "title" in changes and payload.title is not None:
            task.title = payload.title
        if "description" in changes:
            task.description = payload.description
        if payload.done is not None:
            task.done = payload.done

        await self._session.flush()
        await self._session.refresh(task)
        logger.info(
            "tasks.update.success",
            extra=log_context(task_id=str(task.id), fields=",".join(sorted(changes))),
        )
        return TaskOut.model_validate(task)

    async def delete_task(self, *, task_id: UUID) -> None:
        task = await self._require(task_id)
        await self._repo.delete(task)
        logger.info("tasks.delete.success", extra=log_context(task_id=str(task_id)))

    async def _require(self, task_id: UUID) -> Task:
        task = await self._repo.get_by_id(task_id)
        if task is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Task not found.")
        return task


__all__ = ["TasksService"]
