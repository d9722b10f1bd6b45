"""Query helpers for working with ``Task`` records."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper_api.models import Task


class TasksRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, task_id: UUID) -> Task | None:
        return await self._session.get(Task, task_id)

    async def list_for_owner(self, owner_id: UUID) -> list[Task]:
        stmt = (
            select(Task)
            .where(Task.owner_id == owner_id)
            .order_by(Task.created_at, Task.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, *, owner_id: UUID, title: str, description: str | None) -> Task:
        task = Task(owner_id=owner_id, title=title, description=description, done=False)
        self._session.add(task)
        await self._session.flush()
        await self._session.refresh(task)
        return task

    async def delete(self, task: Task) -> None:
        await self._session.delete(task)
        await self._session.flush()


__all__ = ["TasksRepository"]
