"""gatekeeper-api: command line for the Gatekeeper API."""

from __future__ import annotations

import typer

from gatekeeper_api.commands import register_all

app = typer.Typer(add_completion=False, help="Gatekeeper API command line.")

register_all(app)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
