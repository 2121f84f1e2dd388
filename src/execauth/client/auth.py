"""``httpx`` adapter that hands resolved credentials to the transport.

:class:`ExecCredentialAuth` resolves a credential through
:class:`~execauth.auth.manager.AuthManager` for every request and applies it
as an ``Authorization`` header. When the server answers ``401`` to an exec
plugin credential, the cached credential is dropped and the request is sent
once more with a freshly obtained one; explicit credentials are never
retried.

A client certificate credential cannot be carried as a header; it is
rejected with :class:`~execauth.exceptions.AuthError` instead of sending the
request without credentials.
"""

from __future__ import annotations

import logging
import threading
from typing import Generator, Optional

import httpx

from execauth.auth.base import AuthResult
from execauth.auth.manager import AuthManager
from execauth.exceptions import AuthError
from execauth.models import (
    AuthConfig,
    ClientCertCredential,
    CredentialOrigin,
    InvocationContext,
    ResolvedCredential,
)

logger = logging.getLogger(__name__)


class ExecCredentialAuth(httpx.Auth):
    """Per-request credential injection for :class:`httpx.Client`.

    Args:
        manager: Resolves (and caches) credentials.
        auth_config: All configured credential sources.
        context: Standard input ownership for this invocation.
        cancel_event: Aborts a running exec plugin when set.

    Example::

        auth = ExecCredentialAuth(manager, auth_config, InvocationContext.detect())
        with httpx.Client(base_url=server, auth=auth) as client:
            client.get("/api/v1/namespaces/kube-system")
    """

    def __init__(
        self,
        manager: AuthManager,
        auth_config: AuthConfig,
        context: InvocationContext,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._manager = manager
        self._auth_config = auth_config
        self._context = context
        self._cancel_event = cancel_event

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        credential = self._resolve()
        self._apply(request, credential)
        response = yield request

        if response.status_code == 401 and credential.origin == CredentialOrigin.EXEC:
            logger.debug("server rejected exec credential, fetching a new one")
            self._manager.invalidate(self._auth_config, credential)
            credential = self._resolve()
            self._apply(request, credential)
            yield request

    def _resolve(self) -> ResolvedCredential:
        return self._manager.resolve(self._auth_config, self._context, self._cancel_event)

    @staticmethod
    def _apply(request: httpx.Request, credential: ResolvedCredential) -> None:
        if isinstance(credential, ClientCertCredential):
            raise AuthError(
                f"{credential.origin.value} credential is a client certificate, "
                "which this HTTP transport cannot present; use a bearer token instead"
            )
        for name, value in AuthResult.from_credential(credential).headers.items():
            request.headers[name] = value
