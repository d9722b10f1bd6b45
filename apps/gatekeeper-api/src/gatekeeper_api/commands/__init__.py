"""Command registrations for the Gatekeeper API CLI."""

from __future__ import annotations

import typer

from . import permissions, routes, server, users

COMMAND_MODULES = (
    server,
    permissions,
    routes,
    users,
)


def register_all(app: typer.Typer) -> None:
    for module in COMMAND_MODULES:
        module.register(app)
