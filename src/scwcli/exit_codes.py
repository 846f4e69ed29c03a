"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~scwcli.exceptions.ScwError` subclass.
Shell scripts can inspect the exit code to tell an unknown server name
apart from an unreachable API without parsing stderr.

Example::

    $ scw start does-not-exist
    $ echo $?
    4   # EXIT_NOT_FOUND -- no server matched the given name
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments, or a name that matches more than one resource."""

EXIT_AUTH_FAILURE = 3
"""No token is configured, or the API rejected it."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (no match, or HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The API rejected the request or answered with an unexpected body."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
