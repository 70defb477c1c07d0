"""Typer application and CLI entry point for specgate.

The CLI is a developer aid around the validator: ``specgate check`` runs one
request through the same checks the middleware applies, and ``specgate
routes`` lists the routes a spec declares.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. Unhandled :class:`~specgate.exceptions.SpecgateError`
instances exit with their ``exit_code``; anything else is written to a crash
log in the system temp directory.
"""

from __future__ import annotations

import logging
import signal
import sys
import tempfile
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from specgate import __version__
from specgate.commands.check import check_command
from specgate.commands.routes import routes_command
from specgate.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="specgate",
    help="Validate HTTP requests against OpenAPI / Swagger specs.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("check")(check_command)
app.command("routes")(routes_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specgate {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show validator log lines and debug output."
    ),
) -> None:
    """Root callback: install the output manager and configure logging."""
    from specgate.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose=verbose, quiet=quiet, no_color=no_color)


def _configure_logging(verbose: bool, quiet: bool, no_color: bool) -> None:
    """Send ``specgate.*`` log records to stderr through Rich."""
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR

    handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_time=False,
        show_path=False,
    )
    package_logger = logging.getLogger("specgate")
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback to a temp file and return its path."""
    logs_dir = Path(tempfile.gettempdir()) / "specgate"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``specgate`` console script.

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
        from specgate.exceptions import SpecgateError
        from specgate.output import error

        if isinstance(exc, SpecgateError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
