"""Persisted name-resolution cache.

Maps the short names users type on the command line to full resource
identifiers, one :class:`ResourceIndex` per :class:`~scwcli.models.ResourceKind`.
The cache is an optimisation only: the API stays authoritative, so every
problem reading the cache file degrades to an empty cache instead of an
error, and the resource client refreshes it from the API on a miss.

The whole aggregate is stored as one JSON document::

    {
      "version": 1,
      "endpoint": "https://api.cloud.online.net/",
      "servers": [{"identifier": "abc", "name": "web-1"}],
      "images": [],
      "snapshots": [],
      "bootscripts": []
    }

The ``endpoint`` tag binds the contents to the API endpoint they were
fetched from; loading under another endpoint starts empty. Writes replace
the file atomically so concurrent invocations end with the last writer's
content, never with a truncated file.

See Also:
    :class:`~scwcli.client.resources.ResourceClient` -- owns the cache for
    the lifetime of a command and keeps it warm.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from scwcli.config import atomic_write
from scwcli.exceptions import CacheLoadError, CacheSaveError
from scwcli.models import ResourceKind
from scwcli.output import debug

CACHE_SCHEMA_VERSION = 1


def normalize_endpoint(endpoint: str) -> str:
    """Return *endpoint* with exactly one trailing slash."""
    return endpoint.rstrip("/") + "/"


class CacheEntry(BaseModel):
    """One identifier/name pair. Names are not unique, identifiers are."""

    model_config = ConfigDict(extra="ignore")

    identifier: str
    name: str = ""


class _CacheDocument(BaseModel):
    """On-disk layout. Unknown keys are ignored and missing kinds default to empty."""

    model_config = ConfigDict(extra="ignore")

    version: int = CACHE_SCHEMA_VERSION
    endpoint: str = ""
    servers: list[CacheEntry] = Field(default_factory=list)
    images: list[CacheEntry] = Field(default_factory=list)
    snapshots: list[CacheEntry] = Field(default_factory=list)
    bootscripts: list[CacheEntry] = Field(default_factory=list)


class ResourceIndex:
    """Insertion-ordered identifier -> name index for one resource kind."""

    def __init__(self) -> None:
        self._names: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._names

    def __iter__(self) -> Iterator[CacheEntry]:
        for identifier, name in self._names.items():
            yield CacheEntry(identifier=identifier, name=name)

    def get(self, identifier: str) -> Optional[str]:
        """Return the name recorded for *identifier*, or ``None``."""
        return self._names.get(identifier)

    def upsert(self, identifier: str, name: str) -> bool:
        """Record *name* for *identifier*; return ``True`` if anything changed."""
        if identifier in self._names and self._names[identifier] == name:
            return False
        self._names[identifier] = name
        return True

    def remove(self, identifier: str) -> bool:
        return self._names.pop(identifier, None) is not None

    def clear(self) -> None:
        self._names.clear()

    def lookup(self, needle: str) -> set[str]:
        """Return every identifier matching *needle*.

        An entry matches when its identifier equals the needle, when one
        of identifier and needle is a prefix of the other, or when the
        needle is a case-sensitive substring of the entry's name. The
        empty needle therefore matches every entry.
        """
        matches: set[str] = set()
        for identifier, name in self._names.items():
            if (
                identifier.startswith(needle)
                or needle.startswith(identifier)
                or needle in name
            ):
                matches.add(identifier)
        return matches


class ResolutionCache:
    """In-memory name-resolution cache bound to one file and one API endpoint.

    Use :meth:`load` to build one from disk; it never raises. Mutations
    mark the cache dirty, and :meth:`save` writes it back atomically.
    Nothing is written implicitly.

    Args:
        endpoint: API endpoint the contents belong to.
        path: File the cache is persisted to. ``None`` keeps it in memory
            only, in which case :meth:`save` is a no-op.

    Example::

        cache = ResolutionCache.load(get_resolution_cache_path(), endpoint)
        cache.insert(ResourceKind.SERVERS, "abc", "web-1")
        cache.lookup(ResourceKind.SERVERS, "web")   # {"abc"}
        cache.save()
    """

    def __init__(self, endpoint: str, path: Optional[Path] = None) -> None:
        self._endpoint = normalize_endpoint(endpoint)
        self._path = Path(path) if path is not None else None
        self._indexes: dict[ResourceKind, ResourceIndex] = {
            kind: ResourceIndex() for kind in ResourceKind
        }
        self._dirty = False

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: Path, endpoint: str) -> ResolutionCache:
        """Load the cache stored at *path* for *endpoint*.

        Any problem -- missing or unreadable file, invalid JSON, unknown
        schema version, or contents recorded for another endpoint --
        yields an empty cache bound to *path* and *endpoint*.
        """
        cache = cls(endpoint, path)
        try:
            document = cls._read(Path(path), cache.endpoint)
        except CacheLoadError as exc:
            debug(f"Starting with an empty resolution cache: {exc}")
            return cache

        for kind in ResourceKind:
            index = cache._indexes[kind]
            for entry in getattr(document, kind.value):
                if entry.identifier:
                    index.upsert(entry.identifier, entry.name)
        debug(f"Loaded resolution cache from {path} ({len(cache)} entries)")
        return cache

    @staticmethod
    def _read(path: Path, endpoint: str) -> _CacheDocument:
        try:
            if not path.is_file():
                raise CacheLoadError(f"no cache file at {path}")
            raw = json.loads(path.read_text(encoding="utf-8"))
            document = _CacheDocument.model_validate(raw)
        except (OSError, json.JSONDecodeError, ValueError) as exc:
            raise CacheLoadError(f"unreadable cache file {path}: {exc}") from exc
        if document.version != CACHE_SCHEMA_VERSION:
            raise CacheLoadError(
                f"cache schema version {document.version} is not {CACHE_SCHEMA_VERSION}"
            )
        if normalize_endpoint(document.endpoint) != endpoint:
            raise CacheLoadError(
                f"cache was built for {document.endpoint or 'an unknown endpoint'}, "
                f"not {endpoint}"
            )
        return document

    def save(self) -> None:
        """Write the whole cache to its file, replacing it atomically.

        Raises:
            CacheSaveError: If the file cannot be written. The previous
                file, if any, is left untouched.
        """
        if self._path is None:
            self._dirty = False
            return
        document = _CacheDocument(
            endpoint=self._endpoint,
            **{
                kind.value: list(self._indexes[kind])
                for kind in ResourceKind
            },
        )
        text = json.dumps(document.model_dump(mode="json"), indent=2) + "\n"
        try:
            atomic_write(self._path, text)
        except OSError as exc:
            raise CacheSaveError(
                f"Cannot write resolution cache {self._path}: {exc}"
            ) from exc
        self._dirty = False
        debug(f"Saved resolution cache to {self._path} ({len(self)} entries)")

    # ------------------------------------------------------------------ #
    # Index operations
    # ------------------------------------------------------------------ #

    def insert(self, kind: ResourceKind, identifier: str, name: str) -> None:
        """Record that *identifier* is currently named *name*.

        Re-inserting an identifier replaces its name; inserting the same
        pair again changes nothing. Empty identifiers are ignored.
        """
        if not identifier:
            return
        if self._indexes[ResourceKind(kind)].upsert(identifier, name or ""):
            self._dirty = True

    def lookup(self, kind: ResourceKind, needle: str) -> set[str]:
        """Return the identifiers of *kind* matching *needle* (see :meth:`ResourceIndex.lookup`)."""
        return self._indexes[ResourceKind(kind)].lookup(needle)

    def remove(self, kind: ResourceKind, identifier: str) -> None:
        """Forget *identifier*, e.g. after the resource was deleted remotely."""
        if self._indexes[ResourceKind(kind)].remove(identifier):
            self._dirty = True

    def clear(self, kind: Optional[ResourceKind] = None) -> None:
        """Drop every entry of *kind*, or of all kinds when *kind* is ``None``."""
        kinds = list(ResourceKind) if kind is None else [ResourceKind(kind)]
        for k in kinds:
            if len(self._indexes[k]):
                self._indexes[k].clear()
                self._dirty = True

    def entries(self, kind: ResourceKind) -> list[CacheEntry]:
        """Entries of *kind* in insertion order."""
        return list(self._indexes[ResourceKind(kind)])

    def name_of(self, kind: ResourceKind, identifier: str) -> Optional[str]:
        return self._indexes[ResourceKind(kind)].get(identifier)

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def is_dirty(self) -> bool:
        """Whether the cache changed since it was loaded or last saved."""
        return self._dirty

    def __len__(self) -> int:
        return sum(len(index) for index in self._indexes.values())

    def stats(self) -> dict[str, Any]:
        """Return per-kind entry counts plus the file and endpoint in use."""
        return {
            "path": str(self._path) if self._path is not None else None,
            "endpoint": self._endpoint,
            **{kind.value: len(self._indexes[kind]) for kind in ResourceKind},
        }
