"""Config commands -- view and modify global configuration.

Provides the ``splitspec config`` sub-command group for reading, updating,
and resetting the user's global configuration file
(:class:`~splitspec.models.GlobalConfig`). Settings are persisted in the
splitspec config directory and supply defaults such as the workspace root,
the default project and the resolver depth ceiling.
"""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from splitspec.exit_codes import EXIT_INVALID_USAGE
from splitspec.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)

_UNSET_VALUES = ("", "none", "null")


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Prints the config directory path to stderr followed by the stored
    configuration on stdout.

    Example::

        splitspec config show
        splitspec config show --json
    """
    from splitspec.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'resolver.max_depth')."
    ),
    value: str = typer.Argument(help="Value to set. Use 'none' to clear a setting."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type and the result is validated against
    :class:`~splitspec.models.GlobalConfig` before saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        splitspec config set workspace ~/src/api-specs
        splitspec config set default_project public
        splitspec config set resolver.max_depth 6
    """
    from splitspec.config import load_global_config, save_global_config
    from splitspec.models import GlobalConfig

    config = load_global_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    current = target[final_key]
    coerced: Any
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes")
    elif isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    elif len(keys) == 1 and value.lower() in _UNSET_VALUES:
        # top-level string settings are all optional
        coerced = None
    else:
        coerced = value

    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset configuration to defaults.

    Replaces the persisted global config with a fresh
    :class:`~splitspec.models.GlobalConfig`. Asks for confirmation unless
    ``--force`` is given.

    Example::

        splitspec config reset
        splitspec config reset --force
    """
    from splitspec.config import save_global_config
    from splitspec.models import GlobalConfig

    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
