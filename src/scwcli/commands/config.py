"""Config commands -- view and modify the user configuration.

Provides the ``scw config`` sub-command group for reading and updating
the configuration file (:class:`~scwcli.models.ScwConfig`) holding the
API endpoint, organization and token.
"""

from __future__ import annotations

import typer

from scwcli.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)

_MASKED = "********"


@config_app.command("show")
def config_show(
    sensitive: bool = typer.Option(
        False, "--sensitive", help="Show the organization and token in clear."
    ),
) -> None:
    """Show the stored configuration.

    Example::

        scw config show
        scw --json config show --sensitive
    """
    from scwcli.config import get_config_dir, load_config
    from scwcli.exceptions import ConfigError

    try:
        config = load_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    data = config.model_dump(mode="json")
    if not sensitive:
        for key in ("organization", "token"):
            if data.get(key):
                data[key] = _MASKED
    info(f"Config directory: {get_config_dir()}")
    format_response(data)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'request.timeout')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to the type of
    the existing field (bool, int, or str) and validated against
    :class:`~scwcli.models.ScwConfig` before saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        scw config set token 00000000-1111-2222-3333-444444444444
        scw config set api_endpoint https://api.example.net/
        scw config set cache.enabled false
    """
    from scwcli.config import load_config, save_config
    from scwcli.exceptions import ConfigError
    from scwcli.models import ScwConfig

    try:
        config = load_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    current = target[final_key]
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes")
    elif isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    else:
        coerced = value  # type: ignore[assignment]

    target[final_key] = coerced

    try:
        new_config = ScwConfig.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_config(new_config)
    shown = _MASKED if final_key in ("token", "organization") else coerced
    success(f"Set {key} = {shown}")
