"""Response models for the health endpoint."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from gatekeeper_api.common.schema import BaseSchema

ComponentState = Literal["available", "unavailable"]


class ComponentHealth(BaseSchema):
    name: str
    status: ComponentState
    detail: str | None = None


class HealthCheckResponse(BaseSchema):
    """Overall status is ``ok`` only when every component is available."""

    status: Literal["ok", "error"]
    version: str
    timestamp: datetime
    components: list[ComponentHealth]


__all__ = ["ComponentHealth", "ComponentState", "HealthCheckResponse"]
