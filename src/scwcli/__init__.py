"""scwcli -- Manage cloud servers, images, snapshots and bootscripts from the shell.

This package implements the ``scw`` command-line client for a cloud compute
provider's REST API. Resources can be referenced by any unambiguous part of
their name or identifier; a local resolution cache maps those short names to
full identifiers and is refreshed from the API whenever a lookup misses.

Typical workflow::

    scw config set token <TOKEN>
    scw config set organization <ORG>
    scw ps --all
    scw start web

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models for configuration and API payloads.
    config: XDG-aware configuration management.
    cache: Persisted name-resolution cache.
    client: HTTP transport and resource client.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
