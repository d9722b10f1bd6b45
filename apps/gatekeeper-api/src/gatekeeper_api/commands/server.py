"""Serve command: run the API under uvicorn."""

from __future__ import annotations

import typer
import uvicorn


def run_server(*, host: str, port: int, reload: bool) -> None:
    """Run the Gatekeeper API with uvicorn."""
    uvicorn.run(
        "gatekeeper_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


def register(app: typer.Typer) -> None:
    @app.command(name="serve", help=run_server.__doc__)
    def serve(
        host: str = typer.Option("127.0.0.1", help="Interface to bind."),
        port: int = typer.Option(8000, help="Port to bind."),
        reload: bool = typer.Option(False, help="Reload on code changes."),
    ) -> None:
        run_server(host=host, port=port, reload=reload)
