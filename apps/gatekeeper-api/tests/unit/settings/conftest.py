from __future__ import annotations

from collections.abc import Iterator

import pytest
from pydantic import ValidationError

from gatekeeper_api.settings import reload_settings


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Ensure settings cache and env overrides are cleared between tests."""

    for var in (
        "GATEKEEPER_APP_NAME",
        "GATEKEEPER_API_DOCS_ENABLED",
        "GATEKEEPER_LOGGING_LEVEL",
        "GATEKEEPER_SERVER_CORS_ORIGINS",
        "GATEKEEPER_DATABASE_URL",
        "GATEKEEPER_DATABASE_ECHO",
        "GATEKEEPER_IDENTITY_HEADER",
        "GATEKEEPER_PERMISSION_STRING_SEPARATOR",
        "GATEKEEPER_STRICT_ROUTE_PERMISSIONS",
    ):
        monkeypatch.delenv(var, raising=False)
    try:
        reload_settings()
    except ValidationError:
        pass
    yield
    try:
        monkeypatch.undo()
        reload_settings()
    except ValidationError:
        pass
