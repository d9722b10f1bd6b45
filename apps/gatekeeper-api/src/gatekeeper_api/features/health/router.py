"""Unguarded liveness/readiness endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from gatekeeper_api.core.http.dependencies import PermissionTableDep, SessionDep, SettingsDep

from .schemas import HealthCheckResponse
from .service import HealthService

router = APIRouter(tags=["health"])


def get_health_service(
    settings: SettingsDep,
    session: SessionDep,
    table: PermissionTableDep,
) -> HealthService:
    return HealthService(settings=settings, session=session, table=table)


@router.get("", response_model=HealthCheckResponse, summary="Service health status")
async def read_health(
    service: Annotated[HealthService, Depends(get_health_service)],
) -> HealthCheckResponse:
    return await service.status()


__all__ = ["router"]
