"""API router composition for the Gatekeeper FastAPI application."""

from __future__ import annotations

from fastapi import APIRouter

from .features.health.router import router as health_router
from .features.permissions.router import router as permissions_router
from .features.tasks.router import router as tasks_router
from .features.users.router import router as users_router

api_router = APIRouter(prefix="/v1")
api_router.include_router(health_router, prefix="/health")
api_router.include_router(permissions_router)
api_router.include_router(users_router)
api_router.include_router(tasks_router)

__all__ = ["api_router"]
