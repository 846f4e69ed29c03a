"""Read-only commands -- list and inspect resources.

Every listing warms the resolution cache as a side effect, so a ``scw ps
--all`` followed by ``scw start web`` resolves ``web`` without another
API round trip.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from scwcli.commands.common import api_session, pick_one
from scwcli.models import ResourceKind
from scwcli.output import format_response, print_data, print_table

_SHORT_ID = 8


def _short(identifier: str, no_trunc: bool) -> str:
    return identifier if no_trunc else identifier[:_SHORT_ID]


def ps_command(
    ctx: typer.Context,
    all: bool = typer.Option(False, "--all", "-a", help="Show all servers, not only running ones."),
    limit: int = typer.Option(0, "--limit", "-n", help="Show at most N servers (0 means no limit)."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only display identifiers."),
    no_trunc: bool = typer.Option(False, "--no-trunc", help="Do not truncate identifiers."),
) -> None:
    """List servers.

    Example::

        scw ps
        scw ps -a -n 5
    """
    with api_session(ctx) as client:
        servers = client.get_servers(all=all, limit=limit)
        if quiet:
            for server in servers:
                print_data(_short(server.id, no_trunc))
            return
        rows = [
            [
                _short(server.id, no_trunc),
                server.image.name if server.image else "",
                server.creation_date or "",
                server.state,
                server.public_ip.address if server.public_ip else "",
                server.name,
            ]
            for server in servers
        ]
        print_table(["SERVER ID", "IMAGE", "CREATED", "STATUS", "PUBLIC IP", "NAME"], rows)


def images_command(
    ctx: typer.Context,
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only display identifiers."),
    no_trunc: bool = typer.Option(False, "--no-trunc", help="Do not truncate identifiers."),
) -> None:
    """List images."""
    with api_session(ctx) as client:
        images = client.get_images()
        if quiet:
            for image in images:
                print_data(_short(image.id, no_trunc))
            return
        rows = [
            [
                image.name,
                _short(image.id, no_trunc),
                image.creation_date or "",
                str(image.root_volume.size) if image.root_volume else "",
            ]
            for image in images
        ]
        print_table(["REPOSITORY", "IMAGE ID", "CREATED", "VIRTUAL SIZE"], rows)


def snapshots_command(
    ctx: typer.Context,
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only display identifiers."),
    no_trunc: bool = typer.Option(False, "--no-trunc", help="Do not truncate identifiers."),
) -> None:
    """List snapshots."""
    with api_session(ctx) as client:
        snapshots = client.get_snapshots()
        if quiet:
            for snapshot in snapshots:
                print_data(_short(snapshot.id, no_trunc))
            return
        rows = [
            [
                _short(snapshot.id, no_trunc),
                snapshot.name,
                snapshot.creation_date or "",
                snapshot.state,
                str(snapshot.size),
            ]
            for snapshot in snapshots
        ]
        print_table(["SNAPSHOT ID", "NAME", "CREATED", "STATE", "SIZE"], rows)


def bootscripts_command(
    ctx: typer.Context,
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only display identifiers."),
    no_trunc: bool = typer.Option(False, "--no-trunc", help="Do not truncate identifiers."),
) -> None:
    """List bootscripts."""
    with api_session(ctx) as client:
        bootscripts = client.get_bootscripts()
        if quiet:
            for bootscript in bootscripts:
                print_data(_short(bootscript.id, no_trunc))
            return
        rows = [
            [
                _short(bootscript.id, no_trunc),
                bootscript.title,
                bootscript.kernel.title if bootscript.kernel else "",
            ]
            for bootscript in bootscripts
        ]
        print_table(["BOOTSCRIPT ID", "TITLE", "KERNEL"], rows)


def inspect_command(
    ctx: typer.Context,
    names: list[str] = typer.Argument(help="Names or identifiers to inspect."),
    kind: Optional[ResourceKind] = typer.Option(
        None, "--kind", "-k", help="Resource kind (default: servers)."
    ),
) -> None:
    """Show the full API representation of one or more resources.

    Example::

        scw inspect web-1
        scw inspect --kind images ubuntu
    """
    kind = kind or ResourceKind.SERVERS
    with api_session(ctx) as client:
        results: list[Any] = []
        for name in names:
            identifier = pick_one(client, kind, name)
            resource = client.fetch_one(kind, identifier)
            results.append(resource.model_dump(mode="json"))
        format_response(results)
