"""Persisted name-resolution cache for scwcli.

This package provides :class:`ResolutionCache`, the local index that maps
short, user-typed names to full resource identifiers. It is loaded once
per invocation, warmed by every API read, and written back atomically by
:meth:`~scwcli.client.resources.ResourceClient.sync`.

The cache is controlled by the ``cache`` section of the user configuration
(:class:`~scwcli.models.CacheConfig`).
"""

from scwcli.cache.cache import CacheEntry, ResolutionCache, ResourceIndex

__all__ = ["CacheEntry", "ResolutionCache", "ResourceIndex"]
