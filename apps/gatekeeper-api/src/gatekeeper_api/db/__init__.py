"""Persistence layer: ORM base, column conventions and the async engine."""

from .base import Base, TimestampMixin, UTCTimestamp, UUIDPrimaryKeyMixin, metadata, utc_now
from .database import (
    DATABASE_STATE_ATTRIBUTE,
    Database,
    DatabaseConfig,
    build_async_url,
    get_database,
    get_db_session,
)

__all__ = [
    "Base",
    "DATABASE_STATE_ATTRIBUTE",
    "Database",
    "DatabaseConfig",
    "TimestampMixin",
    "UTCTimestamp",
    "UUIDPrimaryKeyMixin",
    "build_async_url",
    "get_database",
    "get_db_session",
    "metadata",
    "utc_now",
]
