"""Exception hierarchy for execauth.

All exceptions inherit from :class:`ExecAuthError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`execauth.exit_codes`.
The top-level error handler in :func:`execauth.app.main` catches
``ExecAuthError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    ExecAuthError (exit 1)
    +-- InvalidUsageError              (exit 2)
    +-- ConfigError                    (exit 1)
    +-- NotFoundError                  (exit 4)
    +-- ServerError                    (exit 5)
    +-- ConnectionError_               (exit 6)
    +-- AuthError                      (exit 3)
        +-- RefusedInteractiveError    (exit 8)
        +-- ExecPluginError            (exit 3)
            +-- PluginSpawnError
            +-- PluginTimeoutError
            +-- PluginCancelledError
            +-- PluginExitError
            +-- MalformedResponseError
            +-- VersionMismatchError
            +-- IncompleteCredentialError

None of the exec plugin errors are retried by the engine. They carry the
command that was run (and, where it applies, the exit status and captured
standard error) so the CLI can print an actionable message.
"""

from __future__ import annotations

from typing import Optional

from execauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INTERACTIVE_REFUSED,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class ExecAuthError(Exception):
    """Base exception for all execauth errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`execauth.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ExecAuthError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(ExecAuthError):
    """Raised for configuration problems (missing kubeconfig, bad YAML, unknown context)."""

    exit_code = EXIT_GENERIC_FAILURE


class NotFoundError(ExecAuthError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(ExecAuthError):
    """Raised when the API returns an HTTP error status other than 401/403/404."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(ExecAuthError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class AuthError(ExecAuthError):
    """Raised when authentication fails or the server rejects the credential."""

    exit_code = EXIT_AUTH_FAILURE


class RefusedInteractiveError(AuthError):
    """The exec plugin was not run because it cannot get the terminal it needs.

    Raised before any process is spawned, either because the current
    command already consumes standard input (e.g. ``-f -``) or because no
    terminal is attached while the plugin declares ``interactiveMode: Always``.

    Args:
        reason: Short explanation, e.g. ``"used by stdin resource manifest reader"``.
        command: The plugin command that was not run.
    """

    exit_code = EXIT_INTERACTIVE_REFUSED

    def __init__(self, reason: str, command: Optional[str] = None):
        super().__init__(f"exec plugin cannot support interactive mode: {reason}")
        self.reason = reason
        self.command = command


class ExecPluginError(AuthError):
    """Base class for failures of an exec plugin that was (or was about to be) run.

    Args:
        message: Human-readable error description.
        command: The plugin command.
    """

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(message)
        self.command = command


class PluginSpawnError(ExecPluginError):
    """The plugin executable could not be started (not found, permission denied)."""

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        install_hint: Optional[str] = None,
    ):
        if install_hint:
            message = f"{message}\n\n{install_hint}"
        super().__init__(message, command)
        self.install_hint = install_hint


class PluginTimeoutError(ExecPluginError):
    """The plugin did not exit within the configured timeout and was killed."""

    def __init__(self, command: str, timeout: float):
        super().__init__(
            f"exec plugin '{command}' did not exit within {timeout:g}s and was killed",
            command,
        )
        self.timeout = timeout


class PluginCancelledError(ExecPluginError):
    """The enclosing request was cancelled while the plugin was running."""

    def __init__(self, command: str):
        super().__init__(f"exec plugin '{command}' was cancelled", command)


class PluginExitError(ExecPluginError):
    """The plugin exited with a non-zero status.

    Attributes:
        exit_status: The process return code.
        stderr: Captured standard error, or ``None`` if it was passed through.
    """

    def __init__(self, command: str, exit_status: int, stderr: Optional[str] = None):
        message = f"exec plugin '{command}' exited with status {exit_status}"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message, command)
        self.exit_status = exit_status
        self.stderr = stderr


class MalformedResponseError(ExecPluginError):
    """The plugin's standard output is not a well-formed ExecCredential document."""

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        stderr: Optional[str] = None,
    ):
        super().__init__(message, command)
        self.stderr = stderr


class VersionMismatchError(ExecPluginError):
    """The plugin answered with an ``apiVersion`` other than the one requested."""

    def __init__(self, expected: str, actual: str, command: Optional[str] = None):
        super().__init__(
            f"exec plugin is configured to use API version {expected}, "
            f"plugin returned version {actual}",
            command,
        )
        self.expected = expected
        self.actual = actual


class IncompleteCredentialError(ExecPluginError):
    """The plugin response has no token and no complete certificate/key pair."""
