"""Side-effect-free credential sources, in precedence order.

See Also:
    :class:`~execauth.auth.base.CredentialSource` for the interface contract.
    :mod:`execauth.auth.precedence` for how the order is applied.
"""

from execauth.sources.basic import BasicAuthSource
from execauth.sources.client_cert import ClientCertSource
from execauth.sources.token import TokenSource

__all__ = ["BasicAuthSource", "ClientCertSource", "TokenSource"]
