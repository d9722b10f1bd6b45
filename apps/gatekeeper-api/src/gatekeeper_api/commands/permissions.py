"""Permissions command: print the resolved permission table."""

from __future__ import annotations

import json

import typer

from gatekeeper_api.settings import get_settings

from .common import load_permission_table


def run_permissions(*, json_output: bool = False) -> None:
    """List every permission key the application knows."""
    table = load_permission_table(get_settings())
    keys = table.permissions()
    if json_output:
        typer.echo(json.dumps({"separator": table.separator, "permissions": keys}, indent=2))
        return
    for key in keys:
        typer.echo(key)


def register(app: typer.Typer) -> None:
    @app.command(name="permissions", help=run_permissions.__doc__)
    def permissions(
        json_output: bool = typer.Option(False, "--json", help="Emit JSON."),
    ) -> None:
        run_permissions(json_output=json_output)
