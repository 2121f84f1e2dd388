"""Explicit bearer token source.

Implements the highest-precedence credential: a token supplied directly
by the caller (``--token`` or the user's ``token``/``tokenFile`` entry).
A token given on the invocation is an authoritative choice and is never
overridden by an exec plugin.
"""

from __future__ import annotations

from execauth.auth.base import CredentialSource
from execauth.models import AuthConfig, CredentialOrigin, TokenCredential


class TokenSource(CredentialSource):
    """Use ``auth_config.token`` when it is a non-empty string."""

    @property
    def source_type(self) -> CredentialOrigin:
        return CredentialOrigin.TOKEN

    def is_configured(self, auth_config: AuthConfig) -> bool:
        return bool(auth_config.token)

    def resolve(self, auth_config: AuthConfig) -> TokenCredential:
        assert auth_config.token
        return TokenCredential(origin=self.source_type, token=auth_config.token)
