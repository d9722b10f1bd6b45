"""Routes command: list API routes with their permission requirements."""

from __future__ import annotations

import json

import typer

from gatekeeper_api.core.authz import collect_route_permissions
from gatekeeper_api.settings import get_settings


def run_routes(*, json_output: bool = False) -> None:
    """List FastAPI routes and the permissions they require."""
    from gatekeeper_api.main import create_app

    app = create_app(get_settings())
    rows = collect_route_permissions(app.routes)

    if json_output:
        payload = [
            {
                "path": row.path,
                "methods": list(row.methods),
                "name": row.name,
                "requires": [str(spec) for spec in row.specs],
            }
            for row in rows
        ]
        typer.echo(json.dumps(payload, indent=2))
        return

    for row in rows:
        requirement = " AND ".join(str(spec) for spec in row.specs) or "-"
        typer.echo(f"{','.join(row.methods):8} {row.path:32} {requirement}")


def register(app: typer.Typer) -> None:
    @app.command(name="routes", help=run_routes.__doc__)
    def routes(
        json_output: bool = typer.Option(False, "--json", help="Emit JSON."),
    ) -> None:
        run_routes(json_output=json_output)
