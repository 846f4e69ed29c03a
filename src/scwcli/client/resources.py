"""Typed resource operations and name resolution.

Every read of the API goes through :func:`fetch_list` or :func:`fetch_one`.
Both take the :class:`~scwcli.cache.ResolutionCache` they update as an
explicit argument and insert each resource they decode into it, so the
cache is warmed by all read traffic, not only by resolution.

:class:`ResourceClient` binds an :class:`~scwcli.client.http_client.HttpClient`
and the cache it owns, and adds:

- per-kind list/get helpers (``get_servers``, ``get_image``, ...),
- server mutations (``post_server_action``, ``post_server``),
- :meth:`ResourceClient.resolve`, which answers from the cache when it
  can and lists the kind from the API at most once when it cannot,
- :meth:`ResourceClient.sync`, which writes a changed cache back to disk.
"""

from __future__ import annotations

from typing import Any, Optional, Type

from pydantic import BaseModel, ValidationError

from scwcli.cache import ResolutionCache
from scwcli.client.http_client import HttpClient
from scwcli.exceptions import CacheSaveError, DecodeError
from scwcli.models import (
    Bootscript,
    Image,
    ResourceKind,
    Server,
    ServerAction,
    ServerDefinition,
    Snapshot,
)
from scwcli.output import debug, warning

_MODELS: dict[ResourceKind, Type[BaseModel]] = {
    ResourceKind.SERVERS: Server,
    ResourceKind.IMAGES: Image,
    ResourceKind.SNAPSHOTS: Snapshot,
    ResourceKind.BOOTSCRIPTS: Bootscript,
}

SERVER_ACTIONS = ("poweron", "poweroff", "reboot", "terminate")


def _decode(kind: ResourceKind, payload: Any, key: str) -> Any:
    if not isinstance(payload, dict):
        raise DecodeError(f"Expected a JSON object for {kind.value}, got {type(payload).__name__}")
    model = _MODELS[kind]
    body = payload.get(key)
    try:
        if key == kind.value:
            if body is None:
                return []
            if not isinstance(body, list):
                raise DecodeError(f"Expected a list under '{key}', got {type(body).__name__}")
            return [model.model_validate(item) for item in body]
        if not isinstance(body, dict):
            raise DecodeError(f"Expected an object under '{key}', got {type(body).__name__}")
        return model.model_validate(body)
    except ValidationError as exc:
        raise DecodeError(f"Unexpected {kind.value} payload: {exc}") from exc


def _index(cache: ResolutionCache, kind: ResourceKind, resource: Any) -> None:
    cache.insert(kind, resource.id, resource.name)


def fetch_list(
    http: HttpClient,
    cache: ResolutionCache,
    kind: ResourceKind,
    params: Optional[dict[str, Any]] = None,
) -> list[Any]:
    """List every resource of *kind* and index each one in *cache*.

    Raises:
        TransportError, APIError, DecodeError: Propagated from the transport
            or raised when the payload does not decode. The cache is left
            untouched in that case.
    """
    kind = ResourceKind(kind)
    payload = http.get_json(kind.value, params=params)
    resources = _decode(kind, payload, kind.value)
    for resource in resources:
        _index(cache, kind, resource)
    return resources


def fetch_one(
    http: HttpClient,
    cache: ResolutionCache,
    kind: ResourceKind,
    identifier: str,
) -> Any:
    """Fetch a single resource of *kind* by identifier and index it in *cache*."""
    kind = ResourceKind(kind)
    payload = http.get_json(f"{kind.value}/{identifier}")
    resource = _decode(kind, payload, kind.singular)
    _index(cache, kind, resource)
    return resource


def resolve(
    http: HttpClient,
    cache: ResolutionCache,
    kind: ResourceKind,
    needle: str,
) -> set[str]:
    """Return every identifier of *kind* matching *needle*.

    The cache answers first. Only when it has no match is the whole kind
    listed from the API, once, before the cache is asked a second and last
    time. An empty result is a valid answer; picking one identifier out of
    several is left to the caller.
    """
    kind = ResourceKind(kind)
    matches = cache.lookup(kind, needle)
    if matches:
        return matches

    debug(f"No cached {kind.value} match '{needle}', refreshing from the API")
    # No state filter: the listing must include stopped servers too.
    fetch_list(http, cache, kind)
    return cache.lookup(kind, needle)


class ResourceClient:
    """Resource operations sharing one HTTP transport and one resolution cache.

    The client owns *cache* for its whole lifetime; call :meth:`sync` once
    when the command is done to persist what it learned.

    Args:
        http: An entered :class:`HttpClient`.
        cache: The resolution cache to consult and keep up to date.
        organization: Organization assigned to servers created through
            :meth:`post_server`.
    """

    def __init__(
        self,
        http: HttpClient,
        cache: ResolutionCache,
        organization: Optional[str] = None,
    ) -> None:
        self._http = http
        self._cache = cache
        self._organization = organization

    @property
    def cache(self) -> ResolutionCache:
        return self._cache

    # ------------------------------------------------------------------ #
    # Generic operations
    # ------------------------------------------------------------------ #

    def fetch_list(self, kind: ResourceKind, params: Optional[dict[str, Any]] = None) -> list[Any]:
        return fetch_list(self._http, self._cache, kind, params=params)

    def fetch_one(self, kind: ResourceKind, identifier: str) -> Any:
        return fetch_one(self._http, self._cache, kind, identifier)

    def resolve(self, kind: ResourceKind, needle: str) -> set[str]:
        """See :func:`resolve`."""
        return resolve(self._http, self._cache, kind, needle)

    def resolve_server(self, needle: str) -> set[str]:
        return self.resolve(ResourceKind.SERVERS, needle)

    def resolve_image(self, needle: str) -> set[str]:
        return self.resolve(ResourceKind.IMAGES, needle)

    def resolve_snapshot(self, needle: str) -> set[str]:
        return self.resolve(ResourceKind.SNAPSHOTS, needle)

    def resolve_bootscript(self, needle: str) -> set[str]:
        return self.resolve(ResourceKind.BOOTSCRIPTS, needle)

    # ------------------------------------------------------------------ #
    # Servers
    # ------------------------------------------------------------------ #

    def get_servers(self, all: bool = False, limit: int = 0) -> list[Server]:
        """List servers, only running ones unless *all* is set.

        *limit* truncates the result client-side; every listed server is
        still indexed in the cache.
        """
        params = None if all else {"state": "running"}
        servers = self.fetch_list(ResourceKind.SERVERS, params=params)
        if 0 < limit < len(servers):
            servers = servers[:limit]
        return servers

    def get_server(self, identifier: str) -> Server:
        return self.fetch_one(ResourceKind.SERVERS, identifier)

    def post_server_action(self, identifier: str, action: str) -> None:
        """Ask the API to run *action* (``poweron``, ``reboot``, ...) on a server."""
        body = ServerAction(action=action).model_dump()
        self._http.post_json(f"servers/{identifier}/action", body, expected=202)

    def post_server(self, definition: ServerDefinition) -> str:
        """Create a server and return its identifier.

        The configured organization is filled in, and the new server is
        inserted into the cache so later commands can name it.
        """
        definition = definition.model_copy(update={"organization": self._organization})
        payload = self._http.post_json(
            ResourceKind.SERVERS.value,
            definition.model_dump(),
            expected=201,
        )
        server = _decode(ResourceKind.SERVERS, payload, ResourceKind.SERVERS.singular)
        _index(self._cache, ResourceKind.SERVERS, server)
        return server.id

    # ------------------------------------------------------------------ #
    # Images, snapshots, bootscripts
    # ------------------------------------------------------------------ #

    def get_images(self) -> list[Image]:
        return self.fetch_list(ResourceKind.IMAGES)

    def get_image(self, identifier: str) -> Image:
        return self.fetch_one(ResourceKind.IMAGES, identifier)

    def get_snapshots(self) -> list[Snapshot]:
        return self.fetch_list(ResourceKind.SNAPSHOTS)

    def get_snapshot(self, identifier: str) -> Snapshot:
        return self.fetch_one(ResourceKind.SNAPSHOTS, identifier)

    def get_bootscripts(self) -> list[Bootscript]:
        return self.fetch_list(ResourceKind.BOOTSCRIPTS)

    def get_bootscript(self, identifier: str) -> Bootscript:
        return self.fetch_one(ResourceKind.BOOTSCRIPTS, identifier)

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def sync(self) -> bool:
        """Write the cache back to disk if this invocation changed it.

        A failure to write is reported as a warning and never raised: the
        command's own result has already been delivered by then.

        Returns:
            ``False`` if the cache could not be saved, ``True`` otherwise.
        """
        if not self._cache.is_dirty:
            return True
        try:
            self._cache.save()
        except CacheSaveError as exc:
            warning(str(exc))
            return False
        return True
