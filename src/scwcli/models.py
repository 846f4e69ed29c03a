"""Canonical Pydantic models shared across all scwcli modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`CacheConfig` and :class:`ScwConfig`.

**API payload models** -- decoded from (or encoded to) the REST API:
    :class:`ResourceKind`, :class:`Volume`, :class:`IPAddress`,
    :class:`Image`, :class:`Snapshot`, :class:`Bootscript`,
    :class:`Server`, :class:`ServerDefinition`, :class:`ServerAction`
    and :class:`APIErrorBody`.

Payload models ignore unknown fields and default missing ones so that
additions on the API side never break decoding.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_API_ENDPOINT = "https://api.cloud.online.net/"


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP request settings applied to every API call."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class CacheConfig(BaseModel):
    """Resolution cache settings stored in :class:`ScwConfig`."""

    enabled: bool = Field(
        default=True,
        description="Persist the name-resolution cache between invocations",
    )


class ScwConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/scwcli/config.json``.

    Loaded and saved by :func:`~scwcli.config.load_config` and
    :func:`~scwcli.config.save_config`. Environment variables and CLI flags
    take precedence, see :func:`~scwcli.config.resolve_config`.
    """

    model_config = ConfigDict(extra="ignore")

    api_endpoint: str = Field(
        default=DEFAULT_API_ENDPOINT, description="Base URL of the compute API"
    )
    organization: Optional[str] = Field(
        default=None, description="Organization owning created resources"
    )
    token: Optional[str] = Field(
        default=None, description="API token sent as X-Auth-Token"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


# --- API payloads ---


class ResourceKind(str, enum.Enum):
    """Resource collections that can be listed and resolved by name.

    The value doubles as the REST collection path and as the key under
    which the kind is persisted in the resolution cache.
    """

    SERVERS = "servers"
    IMAGES = "images"
    SNAPSHOTS = "snapshots"
    BOOTSCRIPTS = "bootscripts"

    @property
    def singular(self) -> str:
        """Key wrapping a single resource in API responses (``"server"``)."""
        return self.value[:-1]


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Volume(_Payload):
    """A block volume attached to a server, image or snapshot."""

    id: str = ""
    name: str = ""
    size: int = 0
    creation_date: Optional[str] = None
    modification_date: Optional[str] = None


class IPAddress(_Payload):
    """A public IPv4 address bound to a server."""

    address: str = ""


class Image(_Payload):
    """A disk image servers can boot from."""

    id: str = ""
    name: str = ""
    creation_date: Optional[str] = None
    modification_date: Optional[str] = None
    root_volume: Optional[Volume] = None


class Snapshot(_Payload):
    """A point-in-time copy of a volume."""

    id: str = ""
    name: str = ""
    creation_date: Optional[str] = None
    modification_date: Optional[str] = None
    size: int = 0
    organization: str = ""
    state: str = ""
    volume_type: str = ""
    base_volume: Optional[Volume] = None


class BootCmdArgs(_Payload):
    id: str = ""
    value: str = ""


class Initrd(_Payload):
    id: str = ""
    path: str = ""
    title: str = ""


class Kernel(_Payload):
    id: str = ""
    dtb: str = ""
    path: str = ""
    title: str = ""


class Bootscript(_Payload):
    """A kernel, initrd and command line used to boot a server.

    Bootscripts have no ``name``; their ``title`` plays that role and is
    what the resolution cache indexes.
    """

    id: str = ""
    title: str = ""
    bootcmdargs: Optional[BootCmdArgs] = None
    initrd: Optional[Initrd] = None
    kernel: Optional[Kernel] = None

    @property
    def name(self) -> str:
        return self.title


class Server(_Payload):
    """A virtual server."""

    id: str = ""
    name: str = ""
    creation_date: Optional[str] = None
    modification_date: Optional[str] = None
    image: Optional[Image] = None
    public_ip: Optional[IPAddress] = None
    state: str = ""


class ServerDefinition(BaseModel):
    """Body of a ``POST /servers`` request."""

    name: str
    image: str
    bootscript: Optional[str] = None
    organization: Optional[str] = None


class ServerAction(BaseModel):
    """Body of a ``POST /servers/<id>/action`` request."""

    action: str


class APIErrorBody(_Payload):
    """Error body returned by the API on a rejected request."""

    message: Optional[str] = None
    type: Optional[str] = None
