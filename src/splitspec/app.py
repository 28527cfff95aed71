"""Typer application factory and CLI entry point for splitspec.

This module wires together the top-level Typer application and registers the
built-in commands (``projects``, ``endpoints``, ``show`` and the ``config``
group).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, registers commands and
invokes the Typer app. Unhandled exceptions are written to a crash log under
the data directory.

See Also:
    :mod:`splitspec.config`: Configuration resolution.
    :mod:`splitspec.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.logging import RichHandler

from splitspec import __version__
from splitspec.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="splitspec",
    help="Explore Redocly-style split OpenAPI workspaces.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"splitspec {__version__}")
        raise typer.Exit()


def _configure_logging(console: Any, quiet: bool, verbose: bool) -> None:
    """Route the ``splitspec`` logger hierarchy to a Rich handler on stderr.

    Level is WARNING by default, DEBUG with ``--verbose`` and ERROR with
    ``--quiet``. Handlers from a previous invocation are replaced.
    """
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR

    logger = logging.getLogger("splitspec")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=verbose,
        markup=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)


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
    workspace: Optional[str] = typer.Option(
        None, "--workspace", "-w", help="Workspace root holding redocly.yaml files."
    ),
    max_depth: Optional[int] = typer.Option(
        None, "--max-depth", min=0, help="Deepest $ref nesting level to expand."
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

    Initialises the global :class:`~splitspec.output.OutputManager` and the
    log handler from CLI flags, and stores shared options (``workspace``,
    ``max_depth``) in the Typer context so that sub-commands can read them
    via ``ctx.obj``.
    """
    from splitspec.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    _configure_logging(output.stderr_console, quiet, verbose)

    ctx.ensure_object(dict)
    ctx.obj["workspace"] = workspace
    ctx.obj["max_depth"] = max_depth
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from splitspec.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def _register_commands() -> None:
    from splitspec.commands.config import config_app
    from splitspec.commands.explore import (
        endpoints_command,
        projects_command,
        show_command,
    )

    app.command("projects")(projects_command)
    app.command("endpoints")(endpoints_command)
    app.command("show")(show_command)
    app.add_typer(config_app, name="config", help="Configuration management.")


_register_commands()


def main() -> None:
    """CLI entry point invoked by the ``splitspec`` console script.

    Unhandled :class:`~splitspec.exceptions.SplitspecError` instances cause
    a clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
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
        from splitspec.exceptions import SplitspecError
        from splitspec.output import error

        if isinstance(exc, SplitspecError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
