"""Precedence resolver -- which single credential source is active.

Fixed order, highest first:

1. explicit token
2. explicit username/password
3. pre-existing client certificate
4. exec plugin

Sources 1-3 are answered here without side effects. When none of them is
configured and an exec plugin is, :func:`resolve_precedence` returns an
:class:`ExecDelegation` instead of running anything; the caller decides
whether and how to spawn the plugin. Resolution itself never fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from execauth.auth.base import CredentialSource
from execauth.models import (
    AuthConfig,
    ClusterInfo,
    ExecConfig,
    NoCredential,
    ResolvedCredential,
)


@dataclass(frozen=True)
class ExecDelegation:
    """No explicit source is configured; the exec plugin must provide the credential."""

    exec_config: ExecConfig
    cluster: Optional[ClusterInfo] = None


def default_sources() -> list[CredentialSource]:
    """Return the built-in explicit sources in precedence order."""
    from execauth.sources import BasicAuthSource, ClientCertSource, TokenSource

    return [TokenSource(), BasicAuthSource(), ClientCertSource()]


def resolve_precedence(
    auth_config: AuthConfig,
    sources: Optional[Sequence[CredentialSource]] = None,
) -> Union[ResolvedCredential, ExecDelegation]:
    """Pick the active credential source for *auth_config*.

    Args:
        auth_config: All configured sources.
        sources: Explicit sources in precedence order; defaults to
            :func:`default_sources`.

    Returns:
        The credential of the first configured explicit source, an
        :class:`ExecDelegation` when only the exec plugin is configured, or
        :class:`~execauth.models.NoCredential` when nothing is.
    """
    for source in sources if sources is not None else default_sources():
        if source.is_configured(auth_config):
            return source.resolve(auth_config)
    if auth_config.exec_config is not None:
        return ExecDelegation(auth_config.exec_config, auth_config.cluster)
    return NoCredential()
