"""Pydantic schemas for user payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from gatekeeper_api.common.schema import BaseSchema


def _check_email(value: str) -> str:
    candidate = value.strip()
    local, _, domain = candidate.partition("@")
    if not local or not domain or "." not in domain:
        raise ValueError("A valid email address is required.")
    return candidate.lower()


class UserOut(BaseSchema):
    id: UUID
    email: str
    display_name: str | None = None
    is_active: bool
    permissions: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class UserCreate(BaseSchema):
    """Payload for creating a user and granting permission keys."""

    email: str = Field(..., max_length=320)
    display_name: str | None = Field(default=None, max_length=255)
    is_active: bool = True
    permissions: list[str] = Field(
        default_factory=list,
        description="Permission keys to grant, e.g. 'task:read:own'.",
    )

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return _check_email(value)


class UserUpdate(BaseSchema):
    """Administrative update; omitted fields are left untouched."""

    display_name: str | None = Field(default=None, max_length=255)
    is_active: bool | None = None
    permissions: list[str] | None = None


class UserSelfUpdate(BaseSchema):
    """Fields a user may change on their own account."""

    display_name: str | None = Field(default=None, max_length=255)


__all__ = ["UserCreate", "UserOut", "UserSelfUpdate", "UserUpdate"]
