"""Typer application and CLI entry point for scwcli.

This module wires together the top-level ``scw`` Typer application and
registers the built-in commands (``ps``, ``images``, ``snapshots``,
``bootscripts``, ``inspect``, ``start``, ``stop``, ``reboot``, ``create``,
``cache``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`scwcli.config`: Configuration resolution.
    :mod:`scwcli.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from scwcli import __version__
from scwcli.commands.cache import cache_app
from scwcli.commands.config import config_app
from scwcli.commands.resources import (
    bootscripts_command,
    images_command,
    inspect_command,
    ps_command,
    snapshots_command,
)
from scwcli.commands.servers import (
    create_command,
    reboot_command,
    start_command,
    stop_command,
)
from scwcli.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="scw",
    help="Interact with cloud servers, images, snapshots and bootscripts from the command line.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("ps")(ps_command)
app.command("images")(images_command)
app.command("snapshots")(snapshots_command)
app.command("bootscripts")(bootscripts_command)
app.command("inspect")(inspect_command)
app.command("start")(start_command)
app.command("stop")(stop_command)
app.command("reboot")(reboot_command)
app.command("create")(create_command)
app.add_typer(cache_app, name="cache", help="Name-resolution cache management.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"scw {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    api_endpoint: Optional[str] = typer.Option(
        None, "--api-endpoint", help="Override the API endpoint."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~scwcli.output.OutputManager` from CLI
    flags and stores shared options in ``ctx.obj`` for sub-commands.
    """
    from scwcli.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )

    ctx.ensure_object(dict)
    ctx.obj["api_endpoint"] = api_endpoint
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from scwcli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``scw`` console script.

    :class:`~scwcli.exceptions.ScwError` instances that escape a command
    cause a clean exit with the error's ``exit_code``. All other
    exceptions produce a crash log and a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from scwcli.exceptions import ScwError
        from scwcli.output import error

        if isinstance(exc, ScwError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
