"""Canonical Pydantic models shared across all execauth modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- loaded once per client invocation and read-only
afterwards:
    :class:`InteractiveMode`, :class:`ExecConfig`, :class:`ClusterInfo`,
    :class:`BasicAuth`, :class:`ClientCertificate`, :class:`AuthConfig`, and
    :class:`InvocationContext`.

**Wire models** -- the ``ExecCredential`` documents exchanged with an exec
plugin:
    :class:`ExecCredentialSpec`, :class:`ExecCredentialRequest`,
    :class:`ExecCredentialStatus`, and :class:`ExecCredentialResponse`.

**Resolution results** -- what the engine hands to the transport layer:
    :class:`TokenCredential`, :class:`BasicAuthCredential`,
    :class:`ClientCertCredential`, and :class:`NoCredential`, joined in the
    :data:`ResolvedCredential` discriminated union.
"""

from __future__ import annotations

import enum
import sys
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


EXEC_INFO_ENV = "KUBERNETES_EXEC_INFO"
"""Environment variable carrying the serialized request to the plugin."""

EXEC_CREDENTIAL_KIND = "ExecCredential"

SUPPORTED_API_VERSIONS = (
    "client.authentication.k8s.io/v1alpha1",
    "client.authentication.k8s.io/v1beta1",
    "client.authentication.k8s.io/v1",
)


# --- Configuration ---


class InteractiveMode(str, enum.Enum):
    """Whether an exec plugin may, or must, use the terminal for prompting."""

    NEVER = "Never"
    IF_AVAILABLE = "IfAvailable"
    ALWAYS = "Always"


class ExecConfig(BaseModel):
    """How to run an exec credential plugin.

    Frozen: instances are shared read-only by every request of an
    invocation, and the credential cache keys on their content.

    Example::

        ExecConfig(
            api_version="client.authentication.k8s.io/v1beta1",
            command="aws",
            args=["eks", "get-token", "--cluster-name", "prod"],
            env={"AWS_PROFILE": "prod"},
        )
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_version: str = Field(alias="apiVersion")
    command: str
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    interactive_mode: InteractiveMode = Field(
        default=InteractiveMode.IF_AVAILABLE, alias="interactiveMode"
    )
    install_hint: Optional[str] = Field(
        default=None,
        alias="installHint",
        description="Printed when the command cannot be found",
    )
    provide_cluster_info: bool = Field(
        default=True,
        alias="provideClusterInfo",
        description="Include the cluster block in the request object",
    )

    @field_validator("api_version")
    @classmethod
    def _check_api_version(cls, value: str) -> str:
        if value not in SUPPORTED_API_VERSIONS:
            raise ValueError(
                f"unsupported exec plugin apiVersion {value!r}; "
                f"expected one of: {', '.join(SUPPORTED_API_VERSIONS)}"
            )
        return value

    @field_validator("command")
    @classmethod
    def _check_command(cls, value: str) -> str:
        if not value:
            raise ValueError("exec plugin command must not be empty")
        return value

    @field_validator("env", mode="before")
    @classmethod
    def _env_from_list(cls, value: Any) -> Any:
        # kubeconfig files spell env as [{name: ..., value: ...}]
        if isinstance(value, list):
            env: dict[str, Any] = {}
            for index, item in enumerate(value):
                if not isinstance(item, dict) or not item.get("name"):
                    raise ValueError(f"env entry {index} must be a mapping with a 'name' key")
                env[item["name"]] = item.get("value", "")
            return env
        return value


class ClusterInfo(BaseModel):
    """Endpoint metadata forwarded to the plugin so it can pick what to present."""

    model_config = ConfigDict(populate_by_name=True)

    server: str
    certificate_authority_data: Optional[str] = Field(
        default=None, alias="certificate-authority-data"
    )
    insecure_skip_tls_verify: bool = Field(
        default=False, alias="insecure-skip-tls-verify"
    )
    tls_server_name: Optional[str] = Field(default=None, alias="tls-server-name")
    proxy_url: Optional[str] = Field(default=None, alias="proxy-url")
    config: Optional[dict[str, Any]] = None

    def to_exec_info(self) -> dict[str, Any]:
        """Serialize to the ``spec.cluster`` shape plugins expect."""
        data: dict[str, Any] = {"server": self.server}
        if self.certificate_authority_data:
            data["certificate-authority-data"] = self.certificate_authority_data
        if self.insecure_skip_tls_verify:
            data["insecure-skip-tls-verify"] = True
        if self.tls_server_name:
            data["tls-server-name"] = self.tls_server_name
        if self.proxy_url:
            data["proxy-url"] = self.proxy_url
        if self.config is not None:
            data["config"] = self.config
        return data


class BasicAuth(BaseModel):
    """Username/password pair supplied explicitly by the caller."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str = ""


class ClientCertificate(BaseModel):
    """PEM-encoded client certificate and private key."""

    model_config = ConfigDict(frozen=True)

    certificate_data: str
    key_data: str


class AuthConfig(BaseModel):
    """Every credential source available to one API request context.

    Any combination may be set at once; :func:`~execauth.auth.precedence.resolve_precedence`
    decides which single source is active.
    """

    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None
    basic_auth: Optional[BasicAuth] = None
    client_certificate: Optional[ClientCertificate] = None
    exec_config: Optional[ExecConfig] = Field(default=None, alias="exec")
    cluster: Optional[ClusterInfo] = None


class InvocationContext(BaseModel):
    """Per-invocation facts the interactivity arbiter needs.

    ``stdin_reserved_by_caller`` is set by the command dispatcher when the
    command itself reads standard input (``-f -``); standard input is then
    never handed to a plugin.
    """

    model_config = ConfigDict(frozen=True)

    stdin_reserved_by_caller: bool = False
    is_tty_available: bool = False

    @classmethod
    def detect(cls, stdin_reserved: bool = False) -> InvocationContext:
        """Build a context from the current process's standard input."""
        stdin = sys.stdin
        is_tty = stdin is not None and hasattr(stdin, "isatty") and stdin.isatty()
        return cls(stdin_reserved_by_caller=stdin_reserved, is_tty_available=is_tty)


# --- Wire models ---


class ExecCredentialSpec(BaseModel):
    interactive: bool
    cluster: Optional[dict[str, Any]] = None


class ExecCredentialRequest(BaseModel):
    """The object serialized into ``KUBERNETES_EXEC_INFO`` for the child."""

    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field(alias="apiVersion")
    kind: str = EXEC_CREDENTIAL_KIND
    spec: ExecCredentialSpec

    def to_env_value(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class ExecCredentialStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None
    client_certificate_data: Optional[str] = Field(
        default=None, alias="clientCertificateData"
    )
    client_key_data: Optional[str] = Field(default=None, alias="clientKeyData")
    expiration_timestamp: Optional[datetime] = Field(
        default=None, alias="expirationTimestamp"
    )


class ExecCredentialResponse(BaseModel):
    """What a plugin writes to standard output.

    ``kind`` is optional on the wire; when present it must be
    ``ExecCredential``.
    """

    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field(alias="apiVersion")
    kind: Optional[str] = None
    status: Optional[ExecCredentialStatus] = None


# --- Resolution results ---


class CredentialOrigin(str, enum.Enum):
    """Which configured source produced a credential."""

    TOKEN = "token"
    BASIC_AUTH = "basic_auth"
    CLIENT_CERTIFICATE = "client_certificate"
    EXEC = "exec"
    NONE = "none"


def _redact(value: str) -> str:
    if len(value) <= 4:
        return "****"
    return f"{value[:2]}****{value[-2:]}"


class _CredentialBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    origin: CredentialOrigin
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Whether ``expires_at`` has passed. Credentials without expiry never expire."""
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return now >= expires


class TokenCredential(_CredentialBase):
    kind: Literal["token"] = "token"
    token: str

    def describe(self, show_secrets: bool = False) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "origin": self.origin.value,
            "token": self.token if show_secrets else _redact(self.token),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }


class BasicAuthCredential(_CredentialBase):
    kind: Literal["basic_auth"] = "basic_auth"
    username: str
    password: str

    def describe(self, show_secrets: bool = False) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "origin": self.origin.value,
            "username": self.username,
            "password": self.password if show_secrets else "****",
        }


class ClientCertCredential(_CredentialBase):
    kind: Literal["client_cert"] = "client_cert"
    certificate_data: str
    key_data: str

    def describe(self, show_secrets: bool = False) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "origin": self.origin.value,
            "certificate_data": self.certificate_data if show_secrets else "<redacted>",
            "key_data": self.key_data if show_secrets else "<redacted>",
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }


class NoCredential(_CredentialBase):
    kind: Literal["none"] = "none"
    origin: CredentialOrigin = CredentialOrigin.NONE

    def describe(self, show_secrets: bool = False) -> dict[str, Any]:
        return {"kind": self.kind, "origin": self.origin.value}


ResolvedCredential = Annotated[
    Union[TokenCredential, BasicAuthCredential, ClientCertCredential, NoCredential],
    Field(discriminator="kind"),
]
