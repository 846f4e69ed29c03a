"""Cache commands -- inspect and purge the local name-resolution cache.

The cache only ever holds identifier/name pairs already returned by the
API, so clearing it is always safe; the next lookup refreshes it.
"""

from __future__ import annotations

from typing import Optional

import typer

from scwcli.commands.common import api_endpoint_override, open_cache
from scwcli.config import resolve_config
from scwcli.exceptions import ScwError
from scwcli.models import ResourceKind
from scwcli.output import error, info, print_table, success


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("show")
def cache_show(
    ctx: typer.Context,
    kind: Optional[ResourceKind] = typer.Argument(
        None, help="Only show entries of this kind."
    ),
) -> None:
    """Show cached identifier/name pairs for the configured endpoint.

    Example::

        scw cache show
        scw cache show servers
    """
    try:
        config = resolve_config(api_endpoint_override(ctx))
    except ScwError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    cache = open_cache(config)
    info(f"Endpoint: {cache.endpoint}")
    if cache.path is not None:
        info(f"Cache file: {cache.path}")

    kinds = [kind] if kind is not None else list(ResourceKind)
    rows = [
        [k.value, entry.identifier, entry.name]
        for k in kinds
        for entry in cache.entries(k)
    ]
    print_table(["KIND", "ID", "NAME"], rows)


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Forget every cached name for the configured endpoint."""
    try:
        config = resolve_config(api_endpoint_override(ctx))
        cache = open_cache(config)
        cache.clear()
        cache.save()
    except ScwError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)
    success("Resolution cache cleared.")
