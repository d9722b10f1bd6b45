"""Runtime configuration loaded from ``GATEKEEPER_*`` environment variables.

Values may also come from a ``.env`` file in the working directory. The
authorization-related knobs are ``GATEKEEPER_PERMISSION_STRING_SEPARATOR``
(joins permission path segments into keys) and
``GATEKEEPER_STRICT_ROUTE_PERMISSIONS`` (fail startup, rather than warn, when
a route declares an unknown permission).
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

DEFAULT_SQLITE_PATH = Path("./data/db/gatekeeper.sqlite")
DEFAULT_DATABASE_URL = f"sqlite+aiosqlite:///{DEFAULT_SQLITE_PATH.as_posix()}"
DEFAULT_CORS_ORIGINS = ["http://localhost:5173"]
DEFAULT_IDENTITY_HEADER = "X-Authenticated-User"
DEFAULT_PERMISSION_SEPARATOR = ":"


def _split_origins(value: Any) -> list[str]:
    """Accept a JSON array or a comma-separated string; drop blanks and repeats."""

    if value is None or value == "" or value == []:
        return list(DEFAULT_CORS_ORIGINS)
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                value = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValueError("Expected a JSON array of origins") from exc
            if not isinstance(value, list):
                raise ValueError("Expected a JSON array of origins")
        else:
            value = text.split(",")
    if not isinstance(value, (list, tuple, set)):
        raise TypeError("Expected a string or a list of origins")

    cleaned = (str(item).strip() for item in value)
    return list(dict.fromkeys(item for item in cleaned if item))


class Settings(BaseSettings):
    """Gatekeeper API settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="GATEKEEPER_",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    app_name: str = "Gatekeeper API"
    app_version: str = "0.4.0"
    debug: bool = False
    api_docs_enabled: bool = False
    logging_level: str = "INFO"

    server_cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS)
    )

    database_url: str = DEFAULT_DATABASE_URL
    database_echo: bool = False

    # Header set by the upstream authentication proxy.
    identity_header: str = DEFAULT_IDENTITY_HEADER

    permission_string_separator: str = DEFAULT_PERMISSION_SEPARATOR
    strict_route_permissions: bool = False

    @field_validator("logging_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> str:
        return str(value or "").strip().upper() or "INFO"

    @field_validator("server_cors_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: Any) -> list[str]:
        return _split_origins(value)

    @field_validator("database_url", mode="before")
    @classmethod
    def _check_database_url(cls, value: Any) -> str:
        url = str(value or "").strip()
        if not url:
            return DEFAULT_DATABASE_URL
        try:
            make_url(url)
        except ArgumentError as exc:
            raise ValueError("GATEKEEPER_DATABASE_URL must be a SQLAlchemy URL") from exc
        return url

    @field_validator("identity_header", mode="before")
    @classmethod
    def _check_identity_header(cls, value: Any) -> str:
        header = str(value or "").strip()
        if not header:
            raise ValueError("GATEKEEPER_IDENTITY_HEADER must not be blank")
        return header

    @field_validator("permission_string_separator", mode="before")
    @classmethod
    def _check_separator(cls, value: Any) -> str:
        separator = "" if value is None else str(value)
        if len(separator) != 1 or separator.isspace():
            raise ValueError(
                "GATEKEEPER_PERMISSION_STRING_SEPARATOR must be a single non-blank character"
            )
        return separator

    @property
    def sqlite_path(self) -> Path | None:
        """Filesystem path of a file-backed SQLite database, if configured."""

        url = make_url(self.database_url)
        if url.get_backend_name() != "sqlite" or url.database in (None, "", ":memory:"):
            return None
        return Path(url.database).expanduser()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def reload_settings() -> Settings:
    get_settings.cache_clear()
    return get_settings()


__all__ = [
    "DEFAULT_CORS_ORIGINS",
    "DEFAULT_DATABASE_URL",
    "DEFAULT_IDENTITY_HEADER",
    "DEFAULT_PERMISSION_SEPARATOR",
    "Settings",
    "get_settings",
    "reload_settings",
]
