"""ORM base class and the column conventions every Gatekeeper table shares.

Identifiers are UUIDs generated in Python so callers know them before flush.
Timestamps are stored timezone-aware and always come back in UTC, which SQLite
does not do on its own.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import MetaData, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import DateTime, TypeDecorator

__all__ = [
    "Base",
    "TimestampMixin",
    "UTCTimestamp",
    "UUIDPrimaryKeyMixin",
    "metadata",
    "utc_now",
]

# Deterministic constraint names keep create_all output stable across runs.
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(table_name)s_%(column_0_name)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


class Base(DeclarativeBase):
    metadata = metadata


def utc_now() -> datetime:
    return datetime.now(UTC)


class UTCTimestamp(TypeDecorator):
    """``DateTime`` that never hands out naive values."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        return _to_utc(value)

    def process_result_value(self, value: Any, dialect: Any) -> Any:
        return _to_utc(value)


def _to_utc(value: Any) -> Any:
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class UUIDPrimaryKeyMixin:
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(UTCTimestamp(), nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        UTCTimestamp(),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )
