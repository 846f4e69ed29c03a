"""HTTP client module for scwcli.

Classes:
    :class:`HttpClient` -- blocking transport backed by :class:`httpx.Client`;
        maps failures to :class:`~scwcli.exceptions.TransportError`,
        :class:`~scwcli.exceptions.DecodeError` and
        :class:`~scwcli.exceptions.APIError`.
    :class:`ResourceClient` -- typed resource operations that keep the
        :class:`~scwcli.cache.ResolutionCache` warm and resolve names.

Example::

    from scwcli.client import HttpClient, ResourceClient

    with HttpClient(config) as http:
        client = ResourceClient(http, cache, organization=config.organization)
        matches = client.resolve_server("web")
        client.sync()
"""

from scwcli.client.http_client import HttpClient
from scwcli.client.resources import ResourceClient, fetch_list, fetch_one, resolve

__all__ = ["HttpClient", "ResourceClient", "fetch_list", "fetch_one", "resolve"]
