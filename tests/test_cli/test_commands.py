"""CLI tests for ``execauth resolve`` and ``execauth get``.

Three kubeconfigs are used: a plugin that prints garbage (``ls``), one
that prints a valid token (``echo``), and one that insists on the terminal.
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from execauth.app import app

V1BETA1 = "client.authentication.k8s.io/v1beta1"
ADMIN_TOKEN_JSON = json.dumps({"apiVersion": V1BETA1, "status": {"token": "admin-token"}})


def _kubeconfig(path: Path, exec_block: dict, server: str | None = None) -> Path:
    cluster = f"    server: {server}\n" if server else ""
    args = "".join(f"      - '{a}'\n" for a in exec_block.get("args", []))
    mode = exec_block.get("interactiveMode")
    path.write_text(
        "apiVersion: v1\n"
        "clusters:\n"
        "- cluster:\n"
        f"{cluster}"
        "  name: test\n"
        "contexts:\n"
        "- context:\n"
        "    cluster: test\n"
        "    user: exec_user\n"
        "  name: test\n"
        "current-context: test\n"
        "kind: Config\n"
        "preferences: {}\n"
        "users:\n"
        "- name: exec_user\n"
        "  user:\n"
        "    exec:\n"
        f"      apiVersion: {V1BETA1}\n"
        f"      command: {exec_block['command']}\n"
        + (f"      args:\n{args}" if args else "")
        + (f"      interactiveMode: {mode}\n" if mode else "")
    )
    return path


@pytest.fixture
def invalid_plugin(isolated_config: Path) -> Path:
    return _kubeconfig(isolated_config / "invalid.yaml", {"command": "ls"})


@pytest.fixture
def valid_plugin(isolated_config: Path) -> Path:
    return _kubeconfig(
        isolated_config / "valid.yaml",
        {"command": "echo", "args": [ADMIN_TOKEN_JSON]},
        server="https://k8s.example.com",
    )


@pytest.fixture
def always_interactive_plugin(isolated_config: Path) -> Path:
    return _kubeconfig(
        isolated_config / "interactive.yaml",
        {"command": "echo", "args": [ADMIN_TOKEN_JSON], "interactiveMode": "Always"},
    )


def _resolve(cli_runner, kubeconfig: Path, *args: str, input: str | None = None):
    return cli_runner.invoke(
        app,
        ["--kubeconfig", str(kubeconfig), "--json", "--no-color", "--quiet", *args],
        input=input,
    )


# ---------------------------------------------------------------------------
# resolve: precedence
# ---------------------------------------------------------------------------


class TestResolvePrecedence:
    def test_token_flag_skips_invalid_plugin(self, cli_runner, invalid_plugin: Path) -> None:
        result = _resolve(cli_runner, invalid_plugin, "--token", "admin-token", "resolve", "--show-secrets")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["origin"] == "token"
        assert data["token"] == "admin-token"

    def test_invalid_plugin_runs_without_token(self, cli_runner, invalid_plugin: Path) -> None:
        result = _resolve(cli_runner, invalid_plugin, "resolve")
        assert result.exit_code == 3
        assert "json parse error" in result.output

    def test_valid_plugin_provides_token(self, cli_runner, valid_plugin: Path) -> None:
        result = _resolve(cli_runner, valid_plugin, "resolve", "--show-secrets")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data == {
            "kind": "token",
            "origin": "exec",
            "token": "admin-token",
            "expires_at": None,
        }

    def test_token_redacted_by_default(self, cli_runner, valid_plugin: Path) -> None:
        result = _resolve(cli_runner, valid_plugin, "resolve")
        assert result.exit_code == 0, result.output
        assert "admin-token" not in result.stdout

    def test_username_password_skip_plugin(self, cli_runner, valid_plugin: Path) -> None:
        result = _resolve(
            cli_runner, valid_plugin, "--username", "bad", "--password", "wrong", "resolve"
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["origin"] == "basic_auth"
        assert data["username"] == "bad"

    def test_no_credentials(self, cli_runner, isolated_config: Path) -> None:
        result = _resolve(cli_runner, isolated_config / "missing.yaml", "resolve")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"kind": "none", "origin": "none"}


# ---------------------------------------------------------------------------
# resolve: standard input ownership
# ---------------------------------------------------------------------------


class TestResolveStdin:
    @pytest.mark.parametrize("args", [["-f", "-"], ["--stdin-reserved"]])
    def test_always_interactive_refused(
        self, cli_runner, always_interactive_plugin: Path, args: list[str]
    ) -> None:
        manifest = '{"apiVersion":"v1","kind":"ConfigMap","metadata":{"name":"some-resource"}}'
        result = _resolve(cli_runner, always_interactive_plugin, "resolve", *args, input=manifest)
        assert result.exit_code == 8
        assert (
            "exec plugin cannot support interactive mode: used by stdin resource manifest reader"
            in result.output
        )

    def test_token_flag_avoids_refusal(self, cli_runner, always_interactive_plugin: Path) -> None:
        result = _resolve(
            cli_runner, always_interactive_plugin, "--token", "admin-token", "resolve", "-f", "-"
        )
        assert result.exit_code == 0, result.output

    def test_manifest_file_does_not_reserve_stdin(
        self, cli_runner, valid_plugin: Path, isolated_config: Path
    ) -> None:
        manifest = isolated_config / "cm.yaml"
        manifest.write_text("kind: ConfigMap\n")
        result = _resolve(cli_runner, valid_plugin, "resolve", "-f", str(manifest))
        assert result.exit_code == 0, result.output


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    def test_version(self, cli_runner) -> None:
        from execauth import __version__

        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_bad_exec_timeout(self, cli_runner, valid_plugin: Path) -> None:
        result = _resolve(cli_runner, valid_plugin, "--exec-timeout", "0", "resolve")
        assert result.exit_code == 1
        assert "Invalid engine settings" in result.output

    def test_unknown_context(self, cli_runner, valid_plugin: Path) -> None:
        result = _resolve(cli_runner, valid_plugin, "--context", "prod", "resolve")
        assert result.exit_code == 1
        assert "context 'prod' not found" in result.output

    def test_password_without_username(self, cli_runner, valid_plugin: Path) -> None:
        result = _resolve(cli_runner, valid_plugin, "--password", "wrong", "resolve")
        assert result.exit_code == 2
        assert "--password requires --username" in result.output

    def test_no_credentials_warns(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(
            app,
            ["--kubeconfig", str(isolated_config / "missing.yaml"), "--json", "--no-color", "resolve"],
        )
        assert result.exit_code == 0, result.output
        assert '"origin": "none"' in result.output
        assert "Warning: no credentials configured" in result.output


# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------


class TestGet:
    @pytest.fixture(autouse=True)
    def _mock_api(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from execauth.client import SyncClient

        test = self

        class MockedSyncClient(SyncClient):
            def __init__(self, *args, **kwargs) -> None:
                super().__init__(*args, transport=httpx.MockTransport(test.handler), **kwargs)

        monkeypatch.setattr("execauth.client.SyncClient", MockedSyncClient)

    def _invoke(self, cli_runner, kubeconfig: Path, handler, *args: str):
        self.handler = handler
        return cli_runner.invoke(
            app,
            ["--kubeconfig", str(kubeconfig), "--json", "--no-color", "--quiet", "get", *args],
        )

    def test_authenticated_get(self, cli_runner, valid_plugin: Path) -> None:
        seen: list[str | None] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("Authorization"))
            return httpx.Response(200, json={"kind": "Namespace", "metadata": {"name": "kube-system"}})

        result = self._invoke(cli_runner, valid_plugin, handler, "/api/v1/namespaces/kube-system")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["metadata"]["name"] == "kube-system"
        assert seen == ["Bearer admin-token"]

    def test_unauthorized(self, cli_runner, valid_plugin: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"kind": "Status", "message": "Unauthorized"})

        result = self._invoke(cli_runner, valid_plugin, handler, "/version")
        assert result.exit_code == 3
        assert "Unauthorized" in result.output

    def test_not_found(self, cli_runner, valid_plugin: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"kind": "Status", "message": "not found"})

        result = self._invoke(cli_runner, valid_plugin, handler, "/api/v1/nope")
        assert result.exit_code == 4

    def test_requires_cluster_server(self, cli_runner, invalid_plugin: Path) -> None:
        result = self._invoke(cli_runner, invalid_plugin, lambda r: httpx.Response(200), "/version")
        assert result.exit_code == 1
        assert "No cluster server" in result.output
