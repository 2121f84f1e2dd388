"""Typer application and CLI entry point for execauth.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``resolve``, ``get``). Global options select the
kubeconfig and context, supply explicit credentials, and configure output.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`execauth.config`: Settings and kubeconfig resolution.
    :mod:`execauth.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from execauth import __version__
from execauth.commands.get import get_command
from execauth.commands.resolve import resolve_command
from execauth.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="execauth",
    help="Resolve API credentials from explicit sources or exec plugins.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("resolve")(resolve_command)
app.command("get")(get_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"execauth {__version__}")
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
    kubeconfig: Optional[str] = typer.Option(
        None, "--kubeconfig", help="Path to the kubeconfig file."
    ),
    context: Optional[str] = typer.Option(
        None, "--context", help="Kubeconfig context to use."
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="Bearer token (takes precedence over all other sources)."
    ),
    username: Optional[str] = typer.Option(
        None, "--username", help="Username for basic authentication."
    ),
    password: Optional[str] = typer.Option(
        None, "--password", help="Password for basic authentication."
    ),
    client_certificate: Optional[str] = typer.Option(
        None, "--client-certificate", help="Path to a PEM client certificate."
    ),
    client_key: Optional[str] = typer.Option(
        None, "--client-key", help="Path to the PEM key for --client-certificate."
    ),
    exec_timeout: Optional[float] = typer.Option(
        None, "--exec-timeout", help="Seconds an exec plugin may run."
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

    Initialises the global :class:`~execauth.output.OutputManager` and the
    ``execauth`` log handler from CLI flags, and stores the credential
    options in the Typer context so that sub-commands can read them via
    ``ctx.obj``.
    """
    from execauth.output import OutputFormat, OutputManager, configure_logging, set_output

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
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["kubeconfig"] = kubeconfig
    ctx.obj["context"] = context
    ctx.obj["token"] = token
    ctx.obj["username"] = username
    ctx.obj["password"] = password
    ctx.obj["client_certificate"] = client_certificate
    ctx.obj["client_key"] = client_key
    ctx.obj["exec_timeout"] = exec_timeout
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly.

    The resulting ``SystemExit`` unwinds through a running exec plugin
    invocation, which kills and reaps the child.
    """

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from execauth.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``execauth`` console script.

    Unhandled :class:`~execauth.exceptions.ExecAuthError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
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
        from execauth.exceptions import ExecAuthError
        from execauth.output import error

        if isinstance(exc, ExecAuthError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
