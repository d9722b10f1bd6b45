"""Shared pytest fixtures for Gatekeeper API tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass
from uuid import UUID

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from gatekeeper_api.db import Database
from gatekeeper_api.main import create_app
from gatekeeper_api.models import Task, User
from gatekeeper_api.settings import DEFAULT_IDENTITY_HEADER, Settings, reload_settings

OWN_USER_PERMISSIONS = [
    "user:read:own",
    "user:update:own",
    "task:list:own",
    "task:create",
    "task:read:own",
    "task:update:own",
    "task:delete:own",
]

ADMIN_PERMISSIONS = [
    *OWN_USER_PERMISSIONS,
    "user:list",
    "user:create",
    "user:read:others",
    "user:update:others",
    "user:delete:others",
    "task:read:others",
    "task:delete:others",
    "permission:list",
]


@dataclass(frozen=True)
class SeededUser:
    id: UUID
    email: str
    permissions: tuple[str, ...]

    @property
    def headers(self) -> dict[str, str]:
        return {DEFAULT_IDENTITY_HEADER: str(self.id)}


@pytest.fixture()
def settings(tmp_path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Settings]:
    """Settings pointing at a throwaway SQLite database."""

    db_path = tmp_path / "db" / "gatekeeper.sqlite"
    monkeypatch.setenv("GATEKEEPER_DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("GATEKEEPER_STRICT_ROUTE_PERMISSIONS", "true")
    monkeypatch.delenv("GATEKEEPER_PERMISSION_STRING_SEPARATOR", raising=False)
    monkeypatch.delenv("GATEKEEPER_IDENTITY_HEADER", raising=False)
    yield reload_settings()
    monkeypatch.undo()
    reload_settings()


@pytest.fixture()
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture()
def database(app: FastAPI) -> Database:
    return app.state.db


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Provide an HTTPX async client bound to the FastAPI app."""

    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client


@pytest_asyncio.fixture()
async def seed_identity(async_client: AsyncClient, database: Database) -> dict[str, SeededUser]:
    """Create baseline users: an administrator, two owners and edge cases."""

    specs = {
        "admin": ("admin@example.com", ADMIN_PERMISSIONS, True),
        "alice": ("alice@example.com", OWN_USER_PERMISSIONS, True),
        "bob": ("bob@example.com", OWN_USER_PERMISSIONS, True),
        "nobody": ("nobody@example.com", [], True),
        "inactive": ("inactive@example.com", OWN_USER_PERMISSIONS, False),
    }
    seeded: dict[str, SeededUser] = {}
    async with database.session_scope() as session:
        users = {
            name: User(email=email, permissions=list(perms), is_active=active)
            for name, (email, perms, active) in specs.items()
        }
        session.add_all(users.values())
        await session.flush()
        for name, user in users.items():
            seeded[name] = SeededUser(
                id=user.id,
                email=user.email,
                permissions=tuple(user.permissions),
            )
    return seeded


@pytest_asyncio.fixture()
async def make_task(database: Database):
    """Factory inserting a task owned by the given user."""

    async def _make(owner: SeededUser, title: str = "Write report") -> UUID:
        async with database.session_scope() as session:
            task = Task(owner_id=owner.id, title=title)
            session.add(task)
            await session.flush()
            return task.id

    return _make
