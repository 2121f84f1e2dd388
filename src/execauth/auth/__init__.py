"""Credential resolution for execauth.

The main entry points are:

- :class:`AuthManager` -- resolves the credential for one request, running
  the exec plugin only when no explicit source is configured.
- :func:`create_default_manager` -- factory that builds an
  :class:`AuthManager` from :class:`~execauth.config.EngineSettings`.
- :func:`resolve_precedence` -- the side-effect-free ordering between
  sources.
- :class:`CredentialCache` -- in-process cache of unexpired exec credentials.

Typical usage::

    from execauth.auth import create_default_manager

    manager = create_default_manager()
    credential = manager.resolve(auth_config, InvocationContext.detect())
"""

from execauth.auth.base import AuthResult, CredentialSource
from execauth.auth.cache import CredentialCache
from execauth.auth.manager import AuthManager, create_default_manager
from execauth.auth.precedence import ExecDelegation, resolve_precedence

__all__ = [
    "AuthManager",
    "AuthResult",
    "CredentialCache",
    "CredentialSource",
    "ExecDelegation",
    "create_default_manager",
    "resolve_precedence",
]
