"""Business logic for user operations."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper_api.common.logging import log_context
from gatekeeper_api.core.authz import validate_permission_keys
from gatekeeper_api.models import User

from .repository import UsersRepository
from .schemas import UserCreate, UserOut, UserSelfUpdate, UserUpdate

logger = logging.getLogger(__name__)


def checked_permissions(values: Iterable[str], known: Collection[str]) -> list[str]:
    """Validate granted keys against ``known`` or raise HTTP 422."""

    try:
        return validate_permission_keys(values, known)
    except ValueError as exc:
        raise HTTPException(
            status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=[
                {
                    "loc": ["body", "permissions"],
                    "msg": str(exc),
                    "type": "value_error",
                }
            ],
        ) from exc


class UsersService:
    """Create, read, update and delete user accounts."""

    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._repo = UsersRepository(session)

    async def list_users(self) -> list[UserOut]:
        users = await self._repo.list_users()
        logger.debug("users.list.success", extra=log_context(count=len(users)))
        return [UserOut.model_validate(user) for user in users]

    async def get_user(self, *, user_id: UUID) -> UserOut:
        user = await self._require(user_id)
        return UserOut.model_validate(user)

    async def create_user(
        self,
        *,
        payload: UserCreate,
        known_permissions: Collection[str],
    ) -> UserOut:
        permissions = checked_permissions(payload.permissions, known_permissions)

        if await self._repo.get_by_email(payload.email) is not None:
            raise HTTPException(status.HTTP_409_CONFLICT, detail="Email already in use.")

        try:
            user = await self._repo.create(
                email=payload.email,
                display_name=payload.display_name,
                is_active=payload.is_active,
                permissions=permissions,
            )
        except IntegrityError as exc:
            raise HTTPException(status.HTTP_409_CONFLICT, detail="Email already in use.") from exc

        logger.info(
            "users.create.success",
            extra=log_context(user_id=str(user.id), permission_count=len(permissions)),
        )
        return UserOut.model_validate(user)

    async def update_user(
        self,
        *,
        user_id: UUID,
        payload: UserUpdate,
        known_permissions: Collection[str],
    ) -> UserOut:
        user = await self._require(user_id)
        changes = payload.model_dump(exclude_unset=True)
        if not changes:
            raise HTTPException(
                status.HTTP_422_UNPROCESSABLE_CONTENT,
                detail="No updatable fields were provided.",
            )

        if "display_name" in changes:
            user.display_name = payload.display_name
        if payload.is_active is not None:
            user.is_active = payload.is_active
        if payload.permissions is not None:
            user.permissions = checked_permissions(payload.permissions, known_permissions)

        await self._session.flush()
        await self._session.refresh(user)
        logger.info(
            "users.update.success",
            extra=log_context(user_id=str(user.id), fields=",".join(sorted(changes))),
        )
        return UserOut.model_validate(user)

    async def update_self(self, *, user_id: UUID, payload: UserSelfUpdate) -> UserOut:
        user = await self._require(user_id)
        if "display_name" in payload.model_fields_set:
            user.display_name = payload.display_name
            await self._session.flush()
            await self._session.refresh(user)
        return UserOut.model_validate(user)

    async def delete_user(self, *, user_id: UUID) -> None:
        user = await self._require(user_id)
        await self._repo.delete(user)
        logger.info("users.delete.success", extra=log_context(user_id=str(user_id)))

    async def _require(self, user_id: UUID) -> User:
        user = await self._repo.get_by_id(user_id)
        if user is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail="User not found.")
        return user


__all__ = ["UsersService", "checked_permissions"]
