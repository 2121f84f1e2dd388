"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~execauth.exceptions.ExecAuthError` subclass.
Shell wrappers can inspect the exit code to tell a refused interactive
plugin apart from a plugin that ran and failed, without parsing stderr.

Example::

    $ echo "$manifest" | execauth resolve -f -
    $ echo $?
    8   # EXIT_INTERACTIVE_REFUSED -- plugin needs stdin, but stdin is taken
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication failed, including every exec plugin failure."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_INTERACTIVE_REFUSED = 8
"""The exec plugin requires interactive input that this invocation cannot give it."""
