"""Get command -- send an authenticated GET to the cluster.

Implements ``execauth get PATH``. Requests go through
:class:`~execauth.client.SyncClient`, so the exec plugin is consulted per
request and a credential rejected with ``401`` is refreshed once.
"""

from __future__ import annotations

import typer


def get_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="API path, e.g. /version."),
    stdin_reserved: bool = typer.Option(
        False,
        "--stdin-reserved",
        help="Treat standard input as owned by this command.",
    ),
    timeout: float = typer.Option(
        30.0, "--request-timeout", help="HTTP timeout in seconds."
    ),
) -> None:
    """GET *path* from the current context's cluster and print the body.

    Example::

        execauth get /version
        execauth --context prod get /api/v1/namespaces --json
    """
    from execauth.auth import create_default_manager
    from execauth.client import SyncClient
    from execauth.commands.resolve import build_auth_config
    from execauth.config import resolve_settings
    from execauth.exceptions import ExecAuthError
    from execauth.models import InvocationContext
    from execauth.output import error, format_response

    obj = ctx.obj or {}
    try:
        auth_config = build_auth_config(ctx)
        settings = resolve_settings(cli_exec_timeout=obj.get("exec_timeout"))
        manager = create_default_manager(settings)
        context = InvocationContext.detect(stdin_reserved=stdin_reserved)
        with SyncClient(auth_config, manager, context, timeout=timeout) as client:
            response = client.get(path)
    except ExecAuthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    try:
        format_response(response.json())
    except ValueError:
        format_response(response.text)
