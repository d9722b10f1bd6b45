"""User management commands."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import typer
from fastapi import HTTPException

from gatekeeper_api.db import Database, DatabaseConfig
from gatekeeper_api.features.users.schemas import UserCreate
from gatekeeper_api.features.users.service import UsersService
from gatekeeper_api.settings import Settings, get_settings

from .common import echo_error, load_permission_table

users_app = typer.Typer(help="Manage users and their permission grants.")


@asynccontextmanager
async def _users_service(settings: Settings) -> AsyncIterator[UsersService]:
    """Yield a ``UsersService`` over a fresh database; commits on success."""

    database = Database()
    database.init(DatabaseConfig.from_settings(settings))
    try:
        await database.create_all()
        async with database.session_scope() as session:
            yield UsersService(session=session)
    finally:
        await database.dispose()


async def _create_user(
    *,
    email: str,
    display_name: str | None,
    permissions: list[str],
    inactive: bool,
    json_output: bool,
) -> None:
    settings = get_settings()
    table = load_permission_table(settings)
    try:
        payload = UserCreate(
            email=email,
            display_name=display_name,
            is_active=not inactive,
            permissions=permissions,
        )
    except ValueError as exc:
        echo_error(str(exc))
        raise typer.Exit(code=1) from exc

    try:
        async with _users_service(settings) as service:
            user = await service.create_user(payload=payload, known_permissions=table)
    except HTTPException as exc:
        detail = exc.detail
        if isinstance(detail, list):
            detail = "; ".join(str(item.get("msg", item)) for item in detail)
        echo_error(str(detail))
        raise typer.Exit(code=1) from exc

    if json_output:
        typer.echo(json.dumps(user.model_dump(mode="json"), indent=2))
        return

    typer.echo(f"Created user {user.email} ({user.id})")
    typer.echo(f"  active: {user.is_active}")
    typer.echo(f"  permissions: {', '.join(user.permissions) or '-'}")


async def _list_users(*, json_output: bool) -> None:
    async with _users_service(get_settings()) as service:
        users = await service.list_users()

    if json_output:
        typer.echo(json.dumps([u.model_dump(mode="json") for u in users], indent=2))
        return
    if not users:
        typer.echo("No users found.")
        return
    for user in users:
        typer.echo(f"{str(user.id):36}  {user.email:30}  {', '.join(user.permissions) or '-'}")


@users_app.command("create")
def create(
    email: str = typer.Option(..., "--email", help="Email address of the new user."),
    display_name: str | None = typer.Option(None, "--display-name"),
    permission: list[str] = typer.Option(
        [],
        "--permission",
        "-p",
        help="Permission key to grant; repeat for several.",
    ),
    inactive: bool = typer.Option(False, "--inactive", help="Create the account disabled."),
    json_output: bool = typer.Option(False, "--json", help="Emit JSON."),
) -> None:
    """Create a user and grant permission keys."""
    asyncio.run(
        _create_user(
            email=email,
            display_name=display_name,
            permissions=list(permission),
            inactive=inactive,
            json_output=json_output,
        )
    )


@users_app.command("list")
def list_(
    json_output: bool = typer.Option(False, "--json", help="Emit JSON."),
) -> None:
    """List users and their grants."""
    asyncio.run(_list_users(json_output=json_output))


def register(app: typer.Typer) -> None:
    app.add_typer(users_app, name="users")
