"""Spawn an exec credential plugin and collect its output.

:class:`PluginInvoker` runs ``command args...`` with the parent's
environment, the exec config's ``env``, and ``KUBERNETES_EXEC_INFO``
holding the serialized :class:`~execauth.models.ExecCredentialRequest`.
Secrets are only ever passed through the environment, never on the
command line where other users could read them from the process list.

Standard streams depend on the interactivity decision:

* **interactive** -- stdin and stderr are inherited so the plugin can
  prompt on the user's terminal.
* **non-interactive** -- stdin is ``/dev/null`` and stderr is captured
  for diagnostics.

stdout is always captured in full. The wait is bounded by a timeout and
can be cut short by a cancellation event; either way the child is killed
and reaped before the error propagates.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import Optional

from execauth.exceptions import (
    PluginCancelledError,
    PluginExitError,
    PluginSpawnError,
    PluginTimeoutError,
)
from execauth.models import (
    EXEC_INFO_ENV,
    ClusterInfo,
    ExecConfig,
    ExecCredentialRequest,
    ExecCredentialSpec,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
DEFAULT_POLL_INTERVAL = 0.05


@dataclass(frozen=True)
class InvocationResult:
    """Output of a plugin that exited with status 0."""

    stdout: bytes
    stderr: Optional[str]
    exit_status: int = 0


def build_exec_request(
    exec_config: ExecConfig,
    interactive: bool,
    cluster: Optional[ClusterInfo] = None,
) -> ExecCredentialRequest:
    """Build the request object describing this call to the plugin."""
    cluster_info = None
    if cluster is not None and exec_config.provide_cluster_info:
        cluster_info = cluster.to_exec_info()
    return ExecCredentialRequest(
        api_version=exec_config.api_version,
        spec=ExecCredentialSpec(interactive=interactive, cluster=cluster_info),
    )


def build_environment(
    exec_config: ExecConfig,
    request: ExecCredentialRequest,
    base_env: Optional[dict[str, str]] = None,
) -> dict[str, str]:
    """Parent environment, overlaid with the config's ``env`` and the request."""
    env = dict(os.environ if base_env is None else base_env)
    env.update(exec_config.env)
    env[EXEC_INFO_ENV] = request.to_env_value()
    return env


def _decode_stderr(data: Optional[bytes]) -> Optional[str]:
    if not data:
        return None
    return data.decode("utf-8", errors="replace")


class PluginInvoker:
    """Run exec plugins with a bounded, cancellable wait.

    Args:
        timeout: Seconds a plugin may run before it is killed.
        poll_interval: How often the cancel event is checked while waiting.

    Example::

        invoker = PluginInvoker(timeout=30)
        result = invoker.invoke(exec_config, interactive=False)
        credential = parse_exec_credential(result.stdout, exec_config.api_version)
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self._timeout = timeout
        self._poll_interval = poll_interval

    @property
    def timeout(self) -> float:
        return self._timeout

    def invoke(
        self,
        exec_config: ExecConfig,
        interactive: bool,
        cluster: Optional[ClusterInfo] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> InvocationResult:
        """Run the plugin once and return its captured output.

        Args:
            exec_config: What to run.
            interactive: Whether the plugin gets the terminal. Callers must
                only pass ``True`` after the interactivity arbiter allowed it.
            cluster: Endpoint metadata for the request object.
            cancel_event: When set, the plugin is killed promptly.

        Raises:
            PluginSpawnError: The executable could not be started.
            PluginTimeoutError: The plugin outlived the timeout.
            PluginCancelledError: *cancel_event* was set while waiting.
            PluginExitError: The plugin exited with a non-zero status.
        """
        command = exec_config.command
        request = build_exec_request(exec_config, interactive, cluster)
        env = build_environment(exec_config, request)
        argv = [command, *exec_config.args]

        logger.debug(
            "running exec plugin %r (interactive=%s, timeout=%gs)",
            command,
            interactive,
            self._timeout,
        )
        try:
            proc = subprocess.Popen(
                argv,
                env=env,
                stdin=None if interactive else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=None if interactive else subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise PluginSpawnError(
                f"exec plugin: executable {command} not found",
                command,
                exec_config.install_hint,
            ) from exc
        except PermissionError as exc:
            raise PluginSpawnError(
                f"exec plugin: permission denied running {command}",
                command,
                exec_config.install_hint,
            ) from exc
        except OSError as exc:
            raise PluginSpawnError(
                f"exec plugin: cannot start {command}: {exc}",
                command,
                exec_config.install_hint,
            ) from exc

        with proc:
            try:
                stdout, stderr_bytes = self._wait(proc, command, cancel_event)
            except BaseException:
                # Timeout, cancellation, KeyboardInterrupt: never leave the child running.
                _kill_and_reap(proc)
                raise

        stderr = _decode_stderr(stderr_bytes)
        if proc.returncode != 0:
            logger.debug("exec plugin %r exited with status %d", command, proc.returncode)
            raise PluginExitError(command, proc.returncode, stderr)
        logger.debug("exec plugin %r wrote %d bytes to stdout", command, len(stdout or b""))
        return InvocationResult(stdout=stdout or b"", stderr=stderr)

    def _wait(
        self,
        proc: subprocess.Popen,
        command: str,
        cancel_event: Optional[threading.Event],
    ) -> tuple[bytes, Optional[bytes]]:
        deadline = time.monotonic() + self._timeout
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise PluginCancelledError(command)
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise PluginTimeoutError(command, self._timeout)
            step = remaining if cancel_event is None else min(remaining, self._poll_interval)
            try:
                # communicate() may be called again after TimeoutExpired
                return proc.communicate(timeout=step)
            except subprocess.TimeoutExpired:
                continue


def _kill_and_reap(proc: subprocess.Popen) -> None:
    if proc.poll() is None:
        proc.kill()
    try:
        proc.communicate(timeout=5)
    except (subprocess.TimeoutExpired, ValueError, OSError):
        proc.wait()
