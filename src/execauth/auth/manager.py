"""Auth manager -- resolves the credential for each outgoing request.

The :class:`AuthManager` is the central coordinator of the engine. For
every request it:

1. asks :func:`~execauth.auth.precedence.resolve_precedence` for the active
   source; explicit sources answer immediately and no process is spawned,
2. for the exec plugin, asks :func:`~execauth.exec.interactive.arbitrate`
   whether the plugin may run and whether it gets the terminal; a refusal
   raises :class:`~execauth.exceptions.RefusedInteractiveError` before any
   spawn,
3. runs the plugin through :class:`~execauth.exec.invoker.PluginInvoker`
   (once per exec config at a time, via :class:`~execauth.auth.cache.CredentialCache`),
4. validates the output with :func:`~execauth.exec.response.parse_exec_credential`.

For most use cases, call :func:`create_default_manager` to get a manager
configured from :class:`~execauth.config.EngineSettings`.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from execauth.auth.cache import CredentialCache
from execauth.auth.precedence import ExecDelegation, resolve_precedence
from execauth.config import EngineSettings
from execauth.exceptions import RefusedInteractiveError
from execauth.exec.interactive import arbitrate
from execauth.exec.invoker import PluginInvoker
from execauth.exec.response import parse_exec_credential
from execauth.models import AuthConfig, InvocationContext, ResolvedCredential

logger = logging.getLogger(__name__)


class AuthManager:
    """Resolve credentials for requests, spawning exec plugins only when needed.

    Args:
        invoker: Runs exec plugins. Defaults to a :class:`PluginInvoker`
            with the default timeout.
        cache: In-process credential cache. Defaults to an enabled
            :class:`CredentialCache`.

    Example::

        manager = AuthManager()
        credential = manager.resolve(auth_config, InvocationContext.detect())
    """

    def __init__(
        self,
        invoker: Optional[PluginInvoker] = None,
        cache: Optional[CredentialCache] = None,
    ) -> None:
        self._invoker = invoker or PluginInvoker()
        self._cache = cache if cache is not None else CredentialCache()

    @property
    def cache(self) -> CredentialCache:
        return self._cache

    def resolve(
        self,
        auth_config: AuthConfig,
        context: InvocationContext,
        cancel_event: Optional[threading.Event] = None,
    ) -> ResolvedCredential:
        """Return the single credential to use for one request.

        Args:
            auth_config: All configured credential sources.
            context: Whether stdin is reserved and whether a TTY is attached.
            cancel_event: Set by the caller to abort a running plugin.

        Returns:
            A :data:`~execauth.models.ResolvedCredential`.

        Raises:
            RefusedInteractiveError: The plugin needs a terminal it cannot have.
            ExecPluginError: Any failure of the plugin or its response.
        """
        decision = resolve_precedence(auth_config)
        if not isinstance(decision, ExecDelegation):
            logger.debug("using %s credential; exec plugin not consulted", decision.origin.value)
            return decision
        return self._resolve_exec(decision, context, cancel_event)

    def invalidate(
        self,
        auth_config: AuthConfig,
        credential: Optional[ResolvedCredential] = None,
    ) -> None:
        """Forget the cached exec credential, e.g. after the server rejected it."""
        if auth_config.exec_config is None:
            return
        key = CredentialCache.make_key(auth_config.exec_config, auth_config.cluster)
        self._cache.invalidate(key, credential)

    def _resolve_exec(
        self,
        delegation: ExecDelegation,
        context: InvocationContext,
        cancel_event: Optional[threading.Event],
    ) -> ResolvedCredential:
        exec_config = delegation.exec_config
        key = CredentialCache.make_key(exec_config, delegation.cluster)

        # Refusal does not depend on the cache: a plugin that needs stdin is
        # refused even if an earlier run left a usable credential behind.
        interactivity = arbitrate(exec_config.interactive_mode, context)
        if interactivity.refused:
            logger.debug(
                "not running exec plugin %r: %s", exec_config.command, interactivity.reason
            )
            raise RefusedInteractiveError(interactivity.reason or "", exec_config.command)

        def fetch() -> ResolvedCredential:
            result = self._invoker.invoke(
                exec_config,
                interactive=interactivity.interactive,
                cluster=delegation.cluster,
                cancel_event=cancel_event,
            )
            credential = parse_exec_credential(
                result.stdout,
                exec_config.api_version,
                command=exec_config.command,
                stderr=result.stderr,
            )
            if credential.is_expired():
                logger.warning(
                    "exec plugin %r returned a credential that has already expired; "
                    "using it for this request only",
                    exec_config.command,
                )
            return credential

        return self._cache.get_or_fetch(key, fetch)


def create_default_manager(settings: Optional[EngineSettings] = None) -> AuthManager:
    """Create an :class:`AuthManager` from engine settings.

    Args:
        settings: Timeout, poll interval and cache switch. Defaults to
            :class:`~execauth.config.EngineSettings` defaults.
    """
    settings = settings or EngineSettings()
    return AuthManager(
        invoker=PluginInvoker(
            timeout=settings.exec_timeout_seconds,
            poll_interval=settings.poll_interval_seconds,
        ),
        cache=CredentialCache(enabled=settings.cache_enabled),
    )
