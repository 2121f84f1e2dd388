"""Resolve command -- show which credential a request would carry.

Implements ``execauth resolve``. It loads the kubeconfig for the selected
context, applies explicit credential flags, and runs the same resolution
an API request would: explicit sources first, the exec plugin only when
none is configured. Secrets are redacted unless ``--show-secrets`` is
passed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from execauth.models import AuthConfig


def build_auth_config(ctx: typer.Context) -> AuthConfig:
    """Load the :class:`~execauth.models.AuthConfig` selected by the global flags."""
    from execauth.config import load_auth_config
    from execauth.exceptions import InvalidUsageError

    obj = ctx.obj or {}
    if obj.get("password") and not obj.get("username"):
        raise InvalidUsageError("--password requires --username")
    kubeconfig = obj.get("kubeconfig")
    return load_auth_config(
        path=Path(kubeconfig).expanduser() if kubeconfig else None,
        context=obj.get("context"),
        token=obj.get("token"),
        username=obj.get("username"),
        password=obj.get("password"),
        client_certificate=obj.get("client_certificate"),
        client_key=obj.get("client_key"),
    )


def resolve_command(
    ctx: typer.Context,
    filename: Optional[str] = typer.Option(
        None,
        "--filename",
        "-f",
        help="Manifest the command reads; '-' means standard input is in use.",
    ),
    stdin_reserved: bool = typer.Option(
        False,
        "--stdin-reserved",
        help="Treat standard input as owned by this command.",
    ),
    show_secrets: bool = typer.Option(
        False, "--show-secrets", help="Print tokens and keys unredacted."
    ),
) -> None:
    """Print the credential that would be used for the current context.

    Raises:
        typer.Exit: With the error's exit code when resolution fails, e.g.
            ``8`` when an exec plugin needs the terminal but ``-f -``
            reserved standard input.

    Example::

        execauth resolve
        execauth --context prod resolve --json
        cat deploy.yaml | execauth resolve -f -
    """
    from execauth.auth import create_default_manager
    from execauth.config import resolve_settings
    from execauth.exceptions import ExecAuthError
    from execauth.models import CredentialOrigin, InvocationContext
    from execauth.output import debug, error, format_response, suggest, warning

    obj = ctx.obj or {}
    try:
        auth_config = build_auth_config(ctx)
        settings = resolve_settings(cli_exec_timeout=obj.get("exec_timeout"))
        context = InvocationContext.detect(stdin_reserved=stdin_reserved or filename == "-")
        debug(
            f"stdin reserved: {context.stdin_reserved_by_caller}, "
            f"tty: {context.is_tty_available}"
        )
        credential = create_default_manager(settings).resolve(auth_config, context)
    except ExecAuthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    format_response(credential.describe(show_secrets=show_secrets))
    if credential.origin == CredentialOrigin.NONE:
        warning("no credentials configured; requests will be sent unauthenticated")
        suggest("Pass --token or set a user in your kubeconfig.")
