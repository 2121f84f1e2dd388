"""In-process cache for exec plugin credentials with request coalescing.

Credentials live only in memory for the lifetime of the process; nothing is
written to disk. Only credentials that carry an ``expires_at`` in the future
are cached -- a plugin that does not say when its credential expires is
asked again on the next request.

Cache keys are SHA-256 hashes of the exec config (command, args, env,
apiVersion, interactive mode) plus the cluster server, so two contexts that
run the same plugin against the same cluster share an entry.

:meth:`CredentialCache.get_or_fetch` holds a per-key lock while fetching, so
at most one plugin process per key is in flight; concurrent callers block
and then reuse the freshly cached credential.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from datetime import datetime
from typing import Any, Callable, Optional

from execauth.models import ClusterInfo, ExecConfig, ResolvedCredential

logger = logging.getLogger(__name__)


class CredentialCache:
    """Thread-safe in-memory credential cache.

    Args:
        enabled: When ``False`` every lookup misses and nothing is stored,
            but :meth:`get_or_fetch` still runs at most one fetch per key at a
            time.

    Example::

        cache = CredentialCache()
        key = CredentialCache.make_key(exec_config, cluster)
        credential = cache.get_or_fetch(key, lambda: run_plugin(exec_config))
    """

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled
        self._entries: dict[str, ResolvedCredential] = {}
        self._key_locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(exec_config: ExecConfig, cluster: Optional[ClusterInfo] = None) -> str:
        """Derive the cache key for an exec config and target cluster."""
        parts = [
            exec_config.model_dump_json(),
            cluster.server if cluster is not None else "",
        ]
        raw = "|".join(parts)
        return hashlib.sha256(raw.encode()).hexdigest()

    def get(self, key: str, now: Optional[datetime] = None) -> Optional[ResolvedCredential]:
        """Return the cached credential for *key*, dropping it if expired."""
        if not self._enabled:
            return None
        with self._lock:
            credential = self._entries.get(key)
            if credential is None:
                return None
            if credential.is_expired(now):
                del self._entries[key]
                logger.debug("cached exec credential %s… expired", key[:12])
                return None
            return credential

    def set(self, key: str, credential: ResolvedCredential, now: Optional[datetime] = None) -> bool:
        """Store *credential* if it has a future expiry.

        Returns:
            ``True`` if the credential was stored.
        """
        if not self._enabled:
            return False
        if credential.expires_at is None or credential.is_expired(now):
            return False
        with self._lock:
            self._entries[key] = credential
        return True

    def invalidate(self, key: str, credential: Optional[ResolvedCredential] = None) -> None:
        """Drop the entry for *key*.

        When *credential* is given, the entry is only dropped if it is still
        that credential, so a stale rejection cannot evict a newer one.
        """
        with self._lock:
            current = self._entries.get(key)
            if current is None:
                return
            if credential is None or current == credential:
                del self._entries[key]

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, Any]:
        """Return ``enabled`` and, when enabled, the number of entries."""
        if not self._enabled:
            return {"enabled": False}
        with self._lock:
            return {"enabled": True, "size": len(self._entries)}

    def get_or_fetch(
        self,
        key: str,
        fetch: Callable[[], ResolvedCredential],
    ) -> ResolvedCredential:
        """Return a cached credential or call *fetch* exactly once per key at a time.

        Exceptions from *fetch* propagate to the caller that ran it; waiting
        callers then try their own fetch.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("exec credential cache hit for %s…", key[:12])
            return cached

        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            # Another caller may have fetched while we waited for the lock.
            cached = self.get(key)
            if cached is not None:
                logger.debug("exec credential fetched by a concurrent request for %s…", key[:12])
                return cached
            credential = fetch()
            self.set(key, credential)
            return credential
