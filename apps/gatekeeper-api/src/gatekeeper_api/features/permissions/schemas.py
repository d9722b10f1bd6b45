"""Pydantic schemas for the permission catalog."""

from __future__ import annotations

from gatekeeper_api.common.schema import BaseSchema


class PermissionOut(BaseSchema):
    key: str
    group: str


class PermissionCatalog(BaseSchema):
    separator: str
    items: list[PermissionOut]


__all__ = ["PermissionCatalog", "PermissionOut"]
