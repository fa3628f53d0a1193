"""In-memory revocation list for invalidated tokens."""

from __future__ import annotations

import time
from threading import Lock


class InMemoryRevocationList:
    """Thread-safe set of revoked token digests, each kept until its token would expire."""

    def __init__(self) -> None:
        self._revoked: dict[str, float] = {}
        self._lock = Lock()

    async def revoke(self, digest: str, expires_at: float) -> None:
        """Remember ``digest`` until the Unix timestamp ``expires_at``."""
        with self._lock:
            self._purge(time.time())
            self._revoked[digest] = expires_at

    async def is_revoked(self, digest: str) -> bool:
        now = time.time()
        with self._lock:
            self._purge(now)
            return digest in self._revoked

    def _purge(self, now: float) -> None:
        for digest in [d for d, expires_at in self._revoked.items() if expires_at <= now]:
            del self._revoked[digest]
