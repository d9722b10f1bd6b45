"""Helpers shared by CLI commands."""

from __future__ import annotations

import typer

from gatekeeper_api.app.permissions import create_permissions_map
from gatekeeper_api.core.authz import PermissionTable, resolve_permission_map
from gatekeeper_api.db import Database
from gatekeeper_api.settings import Settings


def echo_error(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)


def load_permission_table(settings: Settings, database: Database | None = None) -> PermissionTable:
    """Resolve the application's permission map without starting the app."""

    return resolve_permission_map(
        create_permissions_map(database or Database()),
        separator=settings.permission_string_separator,
    )
