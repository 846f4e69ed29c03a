"""Server commands -- power actions and creation.

Servers, images and bootscripts are all named the same way on the command
line: by identifier, identifier prefix, or any part of their name. A name
matching several resources is rejected with the list of candidates.
"""

from __future__ import annotations

from typing import Optional

import typer

from scwcli.commands.common import api_session, pick_one
from scwcli.models import ResourceKind, ServerDefinition
from scwcli.output import print_data, success


def _run_action(ctx: typer.Context, servers: list[str], action: str) -> None:
    with api_session(ctx) as client:
        for needle in servers:
            identifier = pick_one(client, ResourceKind.SERVERS, needle)
            client.post_server_action(identifier, action)
            success(f"{action} requested for {needle}")
            print_data(identifier)


def start_command(
    ctx: typer.Context,
    servers: list[str] = typer.Argument(help="Servers to power on."),
) -> None:
    """Start one or more servers."""
    _run_action(ctx, servers, "poweron")


def stop_command(
    ctx: typer.Context,
    servers: list[str] = typer.Argument(help="Servers to power off."),
    terminate: bool = typer.Option(
        False, "--terminate", "-t", help="Terminate the server and its volumes."
    ),
) -> None:
    """Stop one or more servers."""
    _run_action(ctx, servers, "terminate" if terminate else "poweroff")


def reboot_command(
    ctx: typer.Context,
    servers: list[str] = typer.Argument(help="Servers to reboot."),
) -> None:
    """Reboot one or more servers."""
    _run_action(ctx, servers, "reboot")


def create_command(
    ctx: typer.Context,
    image: str = typer.Argument(help="Image to boot, by name or identifier."),
    name: str = typer.Option(..., "--name", help="Name of the new server."),
    bootscript: Optional[str] = typer.Option(
        None, "--bootscript", help="Bootscript to use, by title or identifier."
    ),
) -> None:
    """Create a new server without starting it.

    Prints the identifier of the new server on stdout.

    Example::

        scw create --name web-2 ubuntu-trusty
    """
    with api_session(ctx) as client:
        definition = ServerDefinition(
            name=name,
            image=pick_one(client, ResourceKind.IMAGES, image),
        )
        if bootscript:
            definition.bootscript = pick_one(client, ResourceKind.BOOTSCRIPTS, bootscript)
        identifier = client.post_server(definition)
        print_data(identifier)
