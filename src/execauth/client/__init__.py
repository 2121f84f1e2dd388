"""HTTP client module for execauth.

Wraps :mod:`httpx` so that every request carries the credential chosen by
the engine.

Classes:
    :class:`ExecCredentialAuth` -- :class:`httpx.Auth` that resolves and
    applies credentials per request.
    :class:`SyncClient` -- blocking client for a cluster endpoint.

Example::

    from execauth.client import SyncClient

    with SyncClient(auth_config, manager, context) as client:
        resp = client.get("/api/v1/namespaces/kube-system")
"""

from execauth.client.auth import ExecCredentialAuth
from execauth.client.sync_client import SyncClient

__all__ = ["ExecCredentialAuth", "SyncClient"]
