"""Expose the resolved permission table so clients can build grant editors."""

from __future__ import annotations

from fastapi import APIRouter, status

from gatekeeper_api.core.authz import PermissionTable, requires_permission
from gatekeeper_api.core.http.dependencies import PermissionTableDep

from .schemas import PermissionCatalog, PermissionOut

router = APIRouter(prefix="/permissions", tags=["permissions"])


def build_catalog(table: PermissionTable) -> PermissionCatalog:
    separator = table.separator
    items = [
        PermissionOut(key=key, group=key.rpartition(separator)[0])
        for key in table.permissions()
    ]
    return PermissionCatalog(separator=separator, items=items)


@router.get(
    "",
    response_model=PermissionCatalog,
    status_code=status.HTTP_200_OK,
    summary="List every known permission key",
    dependencies=[requires_permission("permission:list")],
)
async def list_permissions(table: PermissionTableDep) -> PermissionCatalog:
    return build_catalog(table)


__all__ = ["build_catalog", "router"]
