"""Synchronous HTTP client that authenticates every request.

This module provides :class:`SyncClient`, the blocking client used by the
``execauth get`` command. It wraps :class:`httpx.Client` and layers on:

- **Credential injection** -- :class:`~execauth.client.auth.ExecCredentialAuth`
  resolves the active credential per request, so an exec plugin is only
  run when its cached credential has expired.
- **TLS settings** from the cluster entry (CA bundle, skip-verify).
- **Error mapping** -- HTTP and network failures become the typed
  exceptions from :mod:`execauth.exceptions`.
"""

from __future__ import annotations

import base64
import binascii
import ssl
import threading
from typing import Any, Optional, Union

import httpx

from execauth.auth.manager import AuthManager
from execauth.client.auth import ExecCredentialAuth
from execauth.exceptions import (
    AuthError,
    ConfigError,
    ConnectionError_,
    NotFoundError,
    ServerError,
)
from execauth.models import AuthConfig, ClusterInfo, InvocationContext
from execauth.output import get_output


def _verify_for(cluster: ClusterInfo) -> Union[bool, ssl.SSLContext]:
    if cluster.insecure_skip_tls_verify:
        return False
    if not cluster.certificate_authority_data:
        return True
    try:
        pem = base64.b64decode(cluster.certificate_authority_data, validate=True).decode("ascii")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise ConfigError(f"certificate-authority-data is not valid base64 PEM: {exc}") from exc
    return ssl.create_default_context(cadata=pem)


class SyncClient:
    """Synchronous HTTP client for a cluster API server.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        auth_config: Credential sources and the target cluster. The cluster
            ``server`` becomes the base URL.
        manager: Resolves credentials for each request.
        context: Standard input ownership for this invocation.
        timeout: HTTP timeout in seconds.
        cancel_event: Aborts a running exec plugin when set.
        transport: Optional :class:`httpx.BaseTransport` (used by tests).

    Example::

        with SyncClient(auth_config, manager, InvocationContext.detect()) as client:
            response = client.get("/version")
    """

    def __init__(
        self,
        auth_config: AuthConfig,
        manager: AuthManager,
        context: InvocationContext,
        timeout: float = 30.0,
        cancel_event: Optional[threading.Event] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if auth_config.cluster is None:
            raise ConfigError("No cluster server configured for the current context")
        self._auth_config = auth_config
        self._cluster = auth_config.cluster
        self._auth = ExecCredentialAuth(manager, auth_config, context, cancel_event)
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> SyncClient:
        kwargs: dict[str, Any] = {
            "base_url": self._cluster.server,
            "auth": self._auth,
            "timeout": self._timeout,
            "follow_redirects": True,
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        else:
            kwargs["verify"] = _verify_for(self._cluster)
        self._client = httpx.Client(**kwargs)
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        """Send one authenticated request and map error statuses.

        Raises:
            AuthError: On 401 / 403, or when no credential could be obtained.
            NotFoundError: On 404.
            ServerError: On any other 4xx / 5xx.
            ConnectionError_: On network / timeout errors.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        merged_headers: dict[str, str] = {"Accept": "application/json"}
        merged_headers.update(headers or {})

        get_output().debug(f"{method.upper()} {self._cluster.server}{path}")
        try:
            response = self._client.request(
                method, path, params=params, headers=merged_headers
            )
        except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
            raise ConnectionError_(f"Connection to {self._cluster.server} failed: {exc}") from exc

        self._map_response_error(response)
        return response

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a GET request."""
        return self.request("GET", path, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        # Kubernetes API errors are Status objects with a "message" field.
        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = detail.get("message") or detail.get("error") or ""
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        prefix = f"HTTP {status}"
        full_msg = f"{prefix}: {msg}" if msg else prefix

        if status in (401, 403):
            raise AuthError(full_msg)
        if status == 404:
            raise NotFoundError(full_msg)
        raise ServerError(full_msg)
