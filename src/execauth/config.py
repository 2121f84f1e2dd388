"""Configuration management: engine settings and kubeconfig-shaped auth config.

This module handles all configuration for execauth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.execauth/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Engine settings** -- a single :class:`EngineSettings` JSON file holding
  the exec plugin timeout and cache switch. :func:`resolve_settings` layers
  CLI flags and environment variables over it.
* **Auth config** -- :func:`load_auth_config` reads a kubeconfig-shaped
  YAML (or JSON) file, picks the current context's user and cluster, and
  layers explicitly supplied credentials on top to produce an
  :class:`~execauth.models.AuthConfig`.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from execauth.exceptions import ConfigError
from execauth.models import (
    AuthConfig,
    BasicAuth,
    ClientCertificate,
    ClusterInfo,
    ExecConfig,
)

_APP_NAME = "execauth"
_CONFIG_FILENAME = "config.json"


class EngineSettings(BaseModel):
    """Tunables of the credential engine, persisted at ``~/.config/execauth/config.json``."""

    exec_timeout_seconds: float = Field(
        default=60.0, gt=0, description="Kill the exec plugin after this many seconds"
    )
    poll_interval_seconds: float = Field(
        default=0.05, gt=0, description="How often a running plugin is checked for cancellation"
    )
    cache_enabled: bool = Field(
        default=True, description="Reuse unexpired exec credentials within the process"
    )


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from *env_var*, falling back to ``~/<segments>``."""
    value = os.environ.get(env_var)
    if value:
        return Path(value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/execauth/`` (default ``~/.config/execauth/``).
    On macOS/Windows: ``~/.execauth/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/execauth/`` (default ``~/.local/share/execauth/``).
    On macOS/Windows: ``~/.execauth/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Engine settings ---


def load_settings() -> EngineSettings:
    """Load engine settings from the config directory.

    Returns:
        The deserialised :class:`EngineSettings`, or defaults when the file
        does not exist.

    Raises:
        ConfigError: If the file exists but is not valid JSON or fails
            validation.
    """
    path = get_config_dir() / _CONFIG_FILENAME
    if not path.is_file():
        return EngineSettings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return EngineSettings.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc


def _env_bool(name: str) -> Optional[bool]:
    value = os.environ.get(name)
    if value is None or value == "":
        return None
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"Environment variable {name} must be a boolean, got {value!r}")


def resolve_settings(cli_exec_timeout: Optional[float] = None) -> EngineSettings:
    """Resolve engine settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_exec_timeout``)
        2. Environment variables (``EXECAUTH_EXEC_TIMEOUT``, ``EXECAUTH_CACHE``)
        3. User config (``~/.config/execauth/config.json``)
        4. Defaults
    """
    settings = load_settings()
    updates: dict[str, Any] = {}

    env_timeout = os.environ.get("EXECAUTH_EXEC_TIMEOUT")
    if env_timeout:
        try:
            updates["exec_timeout_seconds"] = float(env_timeout)
        except ValueError as exc:
            raise ConfigError(
                f"EXECAUTH_EXEC_TIMEOUT must be a number of seconds, got {env_timeout!r}"
            ) from exc
    env_cache = _env_bool("EXECAUTH_CACHE")
    if env_cache is not None:
        updates["cache_enabled"] = env_cache

    if cli_exec_timeout is not None:
        updates["exec_timeout_seconds"] = cli_exec_timeout

    if not updates:
        return settings
    try:
        return EngineSettings.model_validate({**settings.model_dump(), **updates})
    except ValidationError as exc:
        raise ConfigError(f"Invalid engine settings: {exc}") from exc


# --- Auth config ---


def default_kubeconfig_path() -> Path:
    """Return ``$KUBECONFIG`` (first entry) or ``~/.kube/config``."""
    env = os.environ.get("KUBECONFIG")
    if env:
        first = env.split(os.pathsep)[0]
        if first:
            return Path(first).expanduser()
    return Path.home() / ".kube" / "config"


def _named(
    entries: Any, name: str, what: str, path: Path, required: bool = True
) -> dict[str, Any]:
    for entry in entries or []:
        if isinstance(entry, dict) and entry.get("name") == name:
            return entry.get(what) or {}
    if not required:
        return {}
    raise ConfigError(f"{what} '{name}' not found in {path}")


def _decode_pem(value: str, field: str) -> str:
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise ConfigError(f"'{field}' is not valid base64-encoded PEM: {exc}") from exc


def _read_file(path: str, what: str) -> str:
    file_path = Path(path).expanduser()
    try:
        return file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {what} {file_path}: {exc}") from exc


def _user_to_auth_fields(user: dict[str, Any], path: Path) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if user.get("token"):
        fields["token"] = user["token"]
    elif user.get("tokenFile"):
        fields["token"] = _read_file(user["tokenFile"], "token file").strip()

    if user.get("username"):
        fields["basic_auth"] = BasicAuth(
            username=user["username"], password=user.get("password") or ""
        )

    cert = key = None
    if user.get("client-certificate-data"):
        cert = _decode_pem(user["client-certificate-data"], "client-certificate-data")
    elif user.get("client-certificate"):
        cert = _read_file(user["client-certificate"], "client certificate")
    if user.get("client-key-data"):
        key = _decode_pem(user["client-key-data"], "client-key-data")
    elif user.get("client-key"):
        key = _read_file(user["client-key"], "client key")
    if cert and key:
        fields["client_certificate"] = ClientCertificate(
            certificate_data=cert, key_data=key
        )
    elif cert or key:
        raise ConfigError(
            f"user in {path} sets a client certificate or key, but not both"
        )

    if user.get("exec"):
        try:
            fields["exec_config"] = ExecConfig.model_validate(user["exec"])
        except ValidationError as exc:
            raise ConfigError(f"Invalid exec config in {path}: {exc}") from exc
    return fields


def load_auth_config(
    path: Optional[Path] = None,
    context: Optional[str] = None,
    token: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    client_certificate: Optional[str] = None,
    client_key: Optional[str] = None,
) -> AuthConfig:
    """Build the :class:`~execauth.models.AuthConfig` for one invocation.

    Reads the kubeconfig at *path* (default :func:`default_kubeconfig_path`),
    selects *context* or ``current-context``, and converts its user and
    cluster entries. Explicit credentials passed as arguments replace the
    file's values for the same source; they never remove the other sources,
    since precedence between sources is decided later.

    A missing kubeconfig is not an error when explicit credentials are given.

    Raises:
        ConfigError: If the file cannot be parsed, the context, user or
            cluster does not exist, or a credential field is malformed.
    """
    path = path or default_kubeconfig_path()
    fields: dict[str, Any] = {}

    if path.is_file():
        try:
            doc = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid kubeconfig at {path}: {exc}") from exc
        if not isinstance(doc, dict):
            raise ConfigError(f"Invalid kubeconfig at {path}: expected a mapping")

        context_name = context or doc.get("current-context")
        if context_name:
            ctx = _named(doc.get("contexts"), context_name, "context", path)
            user_name = ctx.get("user")
            if user_name:
                user = _named(doc.get("users"), user_name, "user", path)
                fields.update(_user_to_auth_fields(user, path))
            cluster_name = ctx.get("cluster")
            if cluster_name:
                cluster = _named(
                    doc.get("clusters"), cluster_name, "cluster", path, required=False
                )
                if cluster.get("server"):
                    try:
                        fields["cluster"] = ClusterInfo.model_validate(cluster)
                    except ValidationError as exc:
                        raise ConfigError(
                            f"Invalid cluster '{cluster_name}' in {path}: {exc}"
                        ) from exc
    elif context is not None:
        raise ConfigError(f"Kubeconfig not found at {path}")

    if token:
        fields["token"] = token
    if username:
        fields["basic_auth"] = BasicAuth(username=username, password=password or "")
    if client_certificate or client_key:
        if not (client_certificate and client_key):
            raise ConfigError(
                "--client-certificate and --client-key must be given together"
            )
        fields["client_certificate"] = ClientCertificate(
            certificate_data=_read_file(client_certificate, "client certificate"),
            key_data=_read_file(client_key, "client key"),
        )

    return AuthConfig(**fields)
