"""Async SQLite engine and session management.

A :class:`Database` is created per application by ``create_app`` and stored
on ``app.state.db``. Request handlers get a session from
:func:`get_db_session`; code outside a request (permission predicates, the
CLI) uses :meth:`Database.session_scope`. Both commit on success and roll
back on error.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gatekeeper_api.common.logging import log_context
from gatekeeper_api.settings import Settings

from .base import metadata

__all__ = [
    "DATABASE_STATE_ATTRIBUTE",
    "Database",
    "DatabaseConfig",
    "build_async_url",
    "get_database",
    "get_db_session",
]

logger = logging.getLogger(__name__)

DATABASE_STATE_ATTRIBUTE = "db"
SQLITE_BUSY_TIMEOUT_MS = 30_000


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    url: str
    echo: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> DatabaseConfig:
        return cls(url=settings.database_url, echo=settings.database_echo)


def build_async_url(cfg: DatabaseConfig) -> URL:
    """Return ``cfg.url`` on the aiosqlite driver; other backends are rejected."""

    url = make_url(cfg.url)
    if url.get_backend_name() != "sqlite":
        raise ValueError("Only SQLite databases are supported.")
    return url.set(drivername="sqlite+aiosqlite")


def _in_memory(url: URL) -> bool:
    database = (url.database or "").strip()
    return database in ("", ":memory:") or (
        database.startswith("file:") and url.query.get("mode") == "memory"
    )


def _create_engine(url: URL, cfg: DatabaseConfig) -> AsyncEngine:
    memory = _in_memory(url)
    if not memory and not url.database.startswith("file:"):
        Path(url.database).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine(
        url,
        echo=cfg.echo,
        connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_MS / 1000},
        # One shared connection keeps an in-memory database alive between sessions.
        **({"poolclass": StaticPool} if memory else {"pool_pre_ping": True}),
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _configure_connection(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
            if not memory:
                cursor.execute("PRAGMA journal_mode=WAL")
        finally:
            cursor.close()

    return engine


class Database:
    """Engine and sessionmaker for one application; ``init`` then ``dispose``."""

    def __init__(self) -> None:
        self._cfg: DatabaseConfig | None = None
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init() at startup.")
        return self._engine

    @property
    def sessionmaker(self) -> async_sessionmaker[AsyncSession]:
        if self._sessionmaker is None:
            raise RuntimeError("Database not initialized. Call init() at startup.")
        return self._sessionmaker

    def init(self, cfg: DatabaseConfig) -> None:
        if self._engine is not None and self._cfg == cfg:
            return

        url = build_async_url(cfg)
        self._engine = _create_engine(url, cfg)
        self._sessionmaker = async_sessionmaker(
            bind=self._engine,
            expire_on_commit=False,
            autoflush=False,
        )
        self._cfg = cfg
        logger.info("db.init", extra=log_context(url=url.render_as_string(hide_password=True)))

    async def create_all(self) -> None:
        """Create missing tables for every registered model."""

        from gatekeeper_api import models  # noqa: F401 - registers mappers

        async with self.engine.begin() as connection:
            await connection.run_sync(metadata.create_all)

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        self._cfg = None

    @asynccontextmanager
    async def session_scope(self) -> AsyncIterator[AsyncSession]:
        session = self.sessionmaker()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            # Closing must finish even when the surrounding task is cancelled.
            await asyncio.shield(session.close())


def get_database(request: Request) -> Database:
    database = getattr(request.app.state, DATABASE_STATE_ATTRIBUTE, None)
    if database is None:
        raise RuntimeError("Database not attached to application state.")
    return database


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding one session per request."""

    async with get_database(request).session_scope() as session:
        yield session
