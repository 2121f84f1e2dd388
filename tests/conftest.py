"""Shared test fixtures for execauth.

Provides reusable fixtures for writing throwaway exec plugins, creating
isolated config environments, managing output state, and running CLI
commands. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.

Exec plugins used in tests are small Python scripts run with
``sys.executable`` so they work wherever the test suite runs.
"""

from __future__ import annotations

import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from execauth.models import ExecConfig, InteractiveMode
from execauth.output import OutputFormat, OutputManager, reset_output, set_output


API_VERSION = "client.authentication.k8s.io/v1"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use. Log
    handlers installed by the CLI callback hold the same stale stream and
    are removed as well.
    """
    yield
    reset_output()
    logger = logging.getLogger("execauth")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Exec plugin fixtures
# ---------------------------------------------------------------------------


def exec_credential(
    token: Optional[str] = "plugin-token",
    api_version: str = API_VERSION,
    expiration: Optional[str] = None,
    **status: Any,
) -> dict[str, Any]:
    """Build an ExecCredential response document."""
    body: dict[str, Any] = dict(status)
    if token is not None:
        body["token"] = token
    if expiration is not None:
        body["expirationTimestamp"] = expiration
    return {"apiVersion": api_version, "kind": "ExecCredential", "status": body}


@pytest.fixture
def write_plugin(tmp_path: Path) -> Callable[..., ExecConfig]:
    """Factory that writes a Python plugin script and returns its ExecConfig.

    Usage::

        config = write_plugin("print('{}')", interactive_mode=InteractiveMode.NEVER)

    The script body is dedented. It runs as ``sys.executable script.py``.
    """
    counter = {"n": 0}

    def _write(
        body: str,
        api_version: str = API_VERSION,
        interactive_mode: InteractiveMode = InteractiveMode.IF_AVAILABLE,
        env: Optional[dict[str, str]] = None,
        args: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> ExecConfig:
        counter["n"] += 1
        script = tmp_path / f"plugin_{counter['n']}.py"
        script.write_text(textwrap.dedent(body))
        return ExecConfig(
            api_version=api_version,
            command=sys.executable,
            args=[str(script), *(args or [])],
            env=env or {},
            interactive_mode=interactive_mode,
            **kwargs,
        )

    return _write


@pytest.fixture
def token_plugin(write_plugin: Callable[..., ExecConfig]) -> Callable[..., ExecConfig]:
    """Factory for a plugin that prints a fixed ExecCredential.

    ``counter_file`` (optional) gets one line appended per run so tests can
    count spawns.
    """

    def _make(
        response: Optional[dict[str, Any]] = None,
        counter_file: Optional[Path] = None,
        **kwargs: Any,
    ) -> ExecConfig:
        payload = json.dumps(response if response is not None else exec_credential())
        body = f"""
            import sys
            counter = {str(counter_file) if counter_file else None!r}
            if counter:
                with open(counter, "a") as fh:
                    fh.write("run\\n")
            sys.stdout.write({payload!r})
        """
        return write_plugin(body, **kwargs)

    return _make


def spawn_count(counter_file: Path) -> int:
    """Number of times a ``token_plugin`` with *counter_file* was run."""
    if not counter_file.exists():
        return 0
    return len(counter_file.read_text().splitlines())


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config, points KUBECONFIG at a
    file that does not exist yet, and clears all EXECAUTH_* environment
    variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("KUBECONFIG", str(tmp_path / "kubeconfig"))

    for var in ["EXECAUTH_EXEC_TIMEOUT", "EXECAUTH_CACHE"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
