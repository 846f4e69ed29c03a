"""Exception hierarchy for scwcli.

All exceptions inherit from :class:`ScwError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`scwcli.exit_codes`.
The top-level error handler in :func:`scwcli.app.main` catches
``ScwError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    ScwError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AmbiguousNameError  (exit 2)
    +-- AuthError           (exit 3)
    +-- NotFoundError       (exit 4)
    +-- APIError            (exit 5, 4 on HTTP 404, 3 on HTTP 401/403)
    +-- DecodeError         (exit 5)
    +-- TransportError      (exit 6)
    +-- CacheLoadError      (exit 1)
    +-- CacheSaveError      (exit 1)
    +-- ConfigError         (exit 1)

``TransportError``, ``DecodeError`` and ``APIError`` are raised by the HTTP
layer and propagate unchanged through resolution and fetch operations.
``CacheLoadError`` never leaves :meth:`~scwcli.cache.ResolutionCache.load`
and ``CacheSaveError`` is downgraded to a warning by
:meth:`~scwcli.client.ResourceClient.sync`.
"""

from __future__ import annotations

from typing import Iterable, Optional

from scwcli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class ScwError(Exception):
    """Base exception for all scwcli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`scwcli.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ScwError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(ScwError):
    """Raised when no API token is configured."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(ScwError):
    """Raised by the command layer when a name resolves to no resource."""

    exit_code = EXIT_NOT_FOUND


class AmbiguousNameError(ScwError):
    """Raised by the command layer when a name resolves to several resources.

    Args:
        kind: Resource kind that was searched (e.g. ``"servers"``).
        needle: The user-supplied name.
        candidates: Every identifier that matched.
    """

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, kind: str, needle: str, candidates: Iterable[str]):
        self.kind = kind
        self.needle = needle
        self.candidates = sorted(candidates)
        super().__init__(
            f"'{needle}' is ambiguous, it matches {len(self.candidates)} {kind}: "
            + ", ".join(self.candidates)
        )


class TransportError(ScwError):
    """Raised on network-level failures (timeout, DNS resolution, TLS, connection refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class DecodeError(ScwError):
    """Raised when a response body is not JSON or does not match the expected schema."""

    exit_code = EXIT_SERVER_ERROR


class APIError(ScwError):
    """Raised when the API explicitly rejects a request.

    The error message prefers the human-readable ``message`` sent by the
    API; when the body carried none, a generic ``invalid return code``
    message naming the status code is used instead.

    Args:
        status_code: HTTP status code received.
        message: Message from the API error body, if any.
        type: Error type code from the API error body, if any.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(
        self,
        status_code: int,
        message: Optional[str] = None,
        type: Optional[str] = None,
    ):
        self.status_code = status_code
        self.api_message = message
        self.type = type
        if status_code in (401, 403):
            exit_code = EXIT_AUTH_FAILURE
        elif status_code == 404:
            exit_code = EXIT_NOT_FOUND
        else:
            exit_code = EXIT_SERVER_ERROR
        text = message or f"invalid return code, got {status_code}"
        super().__init__(text, exit_code=exit_code)

    @property
    def message(self) -> str:
        """The rendered error message."""
        return str(self)


class CacheLoadError(ScwError):
    """Raised internally when the resolution cache file cannot be used."""


class CacheSaveError(ScwError):
    """Raised when the resolution cache cannot be written to disk."""


class ConfigError(ScwError):
    """Raised for configuration problems (invalid JSON, unknown keys, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
