"""Explicit username/password source.

The pair is sent as ``Authorization: Basic`` per :rfc:`7617` by
:meth:`~execauth.auth.base.AuthResult.from_credential`. A username is
what makes the source configured; an empty password is allowed.
"""

from __future__ import annotations

from execauth.auth.base import CredentialSource
from execauth.models import AuthConfig, BasicAuthCredential, CredentialOrigin


class BasicAuthSource(CredentialSource):
    @property
    def source_type(self) -> CredentialOrigin:
        return CredentialOrigin.BASIC_AUTH

    def is_configured(self, auth_config: AuthConfig) -> bool:
        return auth_config.basic_auth is not None and bool(auth_config.basic_auth.username)

    def resolve(self, auth_config: AuthConfig) -> BasicAuthCredential:
        basic = auth_config.basic_auth
        assert basic is not None
        return BasicAuthCredential(
            origin=self.source_type,
            username=basic.username,
            password=basic.password,
        )
