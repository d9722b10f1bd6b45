"""Pydantic schemas for task payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from gatekeeper_api.common.schema import BaseSchema


class TaskOut(BaseSchema):
    id: UUID
    title: str
    description: str | None = None
    done: bool
    owner_id: UUID
    created_at: datetime
    updated_at: datetime


class TaskCreate(BaseSchema):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None


class TaskUpdate(BaseSchema):
    """Partial update; omitted fields are left untouched."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    done: bool | None = None


__all__ = ["TaskCreate", "TaskOut", "TaskUpdate"]
