"""Abstract base class for explicit credential sources.

This module defines the two foundational types of the auth subsystem:

- :class:`AuthResult` -- a plain container for the HTTP headers and TLS
  client certificate that a resolved credential contributes to a request.
- :class:`CredentialSource` -- the abstract base class for every source
  that can answer *without side effects* (token, basic auth, client
  certificate). The exec plugin is deliberately not a ``CredentialSource``:
  it spawns a process and is handled by :class:`~execauth.auth.manager.AuthManager`.

To add a source, subclass :class:`CredentialSource`, set
:attr:`~CredentialSource.source_type`, and implement
:meth:`~CredentialSource.is_configured` and :meth:`~CredentialSource.resolve`.

See Also:
    :mod:`execauth.auth.precedence` for the ordering between sources.
"""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from typing import Optional

from execauth.models import (
    AuthConfig,
    BasicAuthCredential,
    ClientCertCredential,
    CredentialOrigin,
    ResolvedCredential,
    TokenCredential,
)


class AuthResult:
    """Authentication artifacts to apply to an outgoing request.

    Args:
        headers: HTTP headers to add (e.g. ``{"Authorization": "Bearer ..."}``).
        client_cert: PEM ``(certificate, key)`` pair for the TLS layer.

    Example::

        result = AuthResult.from_credential(TokenCredential(origin="token", token="t"))
        assert result.headers["Authorization"] == "Bearer t"
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        client_cert: Optional[tuple[str, str]] = None,
    ):
        self.headers = headers or {}
        self.client_cert = client_cert

    @classmethod
    def from_credential(cls, credential: ResolvedCredential) -> AuthResult:
        """Translate a resolved credential into request artifacts."""
        if isinstance(credential, TokenCredential):
            return cls(headers={"Authorization": f"Bearer {credential.token}"})
        if isinstance(credential, BasicAuthCredential):
            raw = f"{credential.username}:{credential.password}"
            encoded = base64.b64encode(raw.encode("utf-8")).decode("ascii")
            return cls(headers={"Authorization": f"Basic {encoded}"})
        if isinstance(credential, ClientCertCredential):
            return cls(client_cert=(credential.certificate_data, credential.key_data))
        return cls()


class CredentialSource(ABC):
    """A side-effect-free source of credentials.

    Sources are consulted in precedence order by
    :func:`~execauth.auth.precedence.resolve_precedence`; the first one whose
    :meth:`is_configured` returns ``True`` wins.
    """

    @property
    @abstractmethod
    def source_type(self) -> CredentialOrigin:
        """Return which origin this source's credentials report."""
        ...

    @abstractmethod
    def is_configured(self, auth_config: AuthConfig) -> bool:
        """Whether *auth_config* supplies this source with usable material."""
        ...

    @abstractmethod
    def resolve(self, auth_config: AuthConfig) -> ResolvedCredential:
        """Build the credential. Only called when :meth:`is_configured` is true."""
        ...
