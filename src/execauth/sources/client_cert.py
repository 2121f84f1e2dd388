"""Pre-configured client certificate source.

Configured only when both the PEM certificate and key are present; the
loader in :mod:`execauth.config` rejects a lone certificate or key before
it gets here.
"""

from __future__ import annotations

from execauth.auth.base import CredentialSource
from execauth.models import AuthConfig, ClientCertCredential, CredentialOrigin


class ClientCertSource(CredentialSource):
    @property
    def source_type(self) -> CredentialOrigin:
        return CredentialOrigin.CLIENT_CERTIFICATE

    def is_configured(self, auth_config: AuthConfig) -> bool:
        cert = auth_config.client_certificate
        return cert is not None and bool(cert.certificate_data) and bool(cert.key_data)

    def resolve(self, auth_config: AuthConfig) -> ClientCertCredential:
        cert = auth_config.client_certificate
        assert cert is not None
        return ClientCertCredential(
            origin=self.source_type,
            certificate_data=cert.certificate_data,
            key_data=cert.key_data,
        )
