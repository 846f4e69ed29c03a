"""Helpers shared by the API-backed commands.

:func:`api_session` builds the per-invocation objects (effective config,
resolution cache, HTTP transport, resource client), runs the command body,
and writes the cache back exactly once afterwards. It also turns
:class:`~scwcli.exceptions.ScwError` into an error message and the
matching exit code.

:func:`pick_one` applies the ambiguity policy on top of
:meth:`~scwcli.client.resources.ResourceClient.resolve`: resolution
returns every match, commands that act on a single resource need exactly
one.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

import typer

from scwcli.cache import ResolutionCache
from scwcli.client import HttpClient, ResourceClient
from scwcli.config import get_resolution_cache_path, resolve_config
from scwcli.exceptions import AmbiguousNameError, AuthError, NotFoundError, ScwError
from scwcli.models import ResourceKind, ScwConfig
from scwcli.output import error, warning


def open_cache(config: ScwConfig) -> ResolutionCache:
    """Load the resolution cache for the configured endpoint.

    When caching is disabled, or the cache directory cannot be created,
    the cache is memory-only: it still serves lookups within this
    invocation but is neither read nor written.
    """
    if not config.cache.enabled:
        return ResolutionCache(config.api_endpoint)
    try:
        path = get_resolution_cache_path()
    except OSError as exc:
        warning(f"Resolution cache disabled for this run: {exc}")
        return ResolutionCache(config.api_endpoint)
    return ResolutionCache.load(path, config.api_endpoint)


def api_endpoint_override(ctx: Optional[typer.Context]) -> Optional[str]:
    if ctx is None or not isinstance(ctx.obj, dict):
        return None
    return ctx.obj.get("api_endpoint")


@contextmanager
def api_session(ctx: Optional[typer.Context]) -> Iterator[ResourceClient]:
    """Yield a ready :class:`ResourceClient` and sync its cache afterwards.

    Raises:
        typer.Exit: With the exit code of any :class:`ScwError` raised
            while setting up or running the command body.
    """
    try:
        config = resolve_config(api_endpoint_override(ctx))
        if not config.token:
            raise AuthError(
                "No API token configured. Run 'scw config set token <TOKEN>' "
                "or set SCW_TOKEN."
            )
        cache = open_cache(config)
        with HttpClient(config) as http:
            client = ResourceClient(http, cache, organization=config.organization)
            try:
                yield client
            finally:
                client.sync()
    except ScwError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)


def pick_one(client: ResourceClient, kind: ResourceKind, needle: str) -> str:
    """Resolve *needle* to exactly one identifier of *kind*.

    A needle that is itself one of the matching identifiers wins over
    longer identifiers it is a prefix of.

    Raises:
        NotFoundError: Nothing matched, even after refreshing from the API.
        AmbiguousNameError: Several resources matched.
    """
    matches = client.resolve(kind, needle)
    if not matches:
        raise NotFoundError(f"No {kind.value} matching '{needle}'")
    if needle in matches:
        return needle
    if len(matches) > 1:
        raise AmbiguousNameError(kind.value, needle, matches)
    return next(iter(matches))
