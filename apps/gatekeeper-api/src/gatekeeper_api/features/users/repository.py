"""Query helpers for working with ``User`` records."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper_api.models import User


def _canonical_email(value: str) -> str:
    return value.strip().lower()


class UsersRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == _canonical_email(email))
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_users(self) -> list[User]:
        stmt = select(User).order_by(User.email)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def create(
        self,
        *,
        email: str,
        display_name: str | None = None,
        is_active: bool = True,
        permissions: Sequence[str] = (),
    ) -> User:
        user = User(
            email=_canonical_email(email),
            display_name=display_name,
            is_active=is_active,
            permissions=list(permissions),
        )
        self._session.add(user)
        await self._session.flush()
        await self._session.refresh(user)
        return user

    async def delete(self, user: User) -> None:
        await self._session.delete(user)
        await self._session.flush()


__all__ = ["UsersRepository"]
