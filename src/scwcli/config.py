"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent state locations for scwcli:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.scwcli/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **User config** -- A single :class:`~scwcli.models.ScwConfig` JSON file
  holding the API endpoint, organization and token.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables and the config file into the effective
  configuration.

All file writes go through :func:`atomic_write`, which writes a temporary
file next to the target and renames it into place.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from scwcli.exceptions import ConfigError
from scwcli.models import ScwConfig

_APP_NAME = "scwcli"
_CONFIG_FILENAME = "config.json"
_RESOLUTION_CACHE_FILENAME = "resolution.json"

ENV_API_ENDPOINT = "SCW_API_ENDPOINT"
ENV_ORGANIZATION = "SCW_ORGANIZATION"
ENV_TOKEN = "SCW_TOKEN"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/scwcli/`` (default ``~/.config/scwcli/``).
    On macOS/Windows: ``~/.scwcli/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the name-resolution cache, which can be deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/scwcli/`` (default ``~/.cache/scwcli/``).
    On macOS/Windows: ``~/.scwcli/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/scwcli/`` (default ``~/.local/share/scwcli/``).
    On macOS/Windows: ``~/.scwcli/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_resolution_cache_path() -> Path:
    """Path of the persisted name-resolution cache."""
    return get_cache_dir() / _RESOLUTION_CACHE_FILENAME


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up and the original exception is re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- User config ---


def _config_path() -> Path:
    """Path to the user config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_config() -> ScwConfig:
    """Load the user configuration from the config directory.

    Returns:
        The deserialised :class:`~scwcli.models.ScwConfig`. If the file
        does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _config_path()
    if not path.is_file():
        return ScwConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return ScwConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: ScwConfig) -> None:
    """Persist the user configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_config(cli_api_endpoint: Optional[str] = None) -> ScwConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``--api-endpoint``)
        2. Environment variables (``SCW_API_ENDPOINT``, ``SCW_ORGANIZATION``,
           ``SCW_TOKEN``)
        3. User config (``~/.config/scwcli/config.json``)
        4. Defaults

    Returns:
        The effective :class:`~scwcli.models.ScwConfig`.
    """
    config = load_config()

    env_endpoint = os.environ.get(ENV_API_ENDPOINT)
    if env_endpoint:
        config.api_endpoint = env_endpoint
    env_organization = os.environ.get(ENV_ORGANIZATION)
    if env_organization:
        config.organization = env_organization
    env_token = os.environ.get(ENV_TOKEN)
    if env_token:
        config.token = env_token

    if cli_api_endpoint is not None:
        config.api_endpoint = cli_api_endpoint

    return config
