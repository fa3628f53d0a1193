"""Redis-backed revocation list."""

from __future__ import annotations

import math
import time

from redis.asyncio import Redis


class RedisRevocationList:
    """Revoked token digests stored as Redis keys that expire with their tokens."""

    def __init__(self, client: Redis, *, key_prefix: str = "revoked") -> None:
        """Store the async Redis client and the key namespace."""
        self._client = client
        self._key_prefix = key_prefix

    async def revoke(self, digest: str, expires_at: float) -> None:
        """Mark ``digest`` revoked until the Unix timestamp ``expires_at``."""
        ttl = math.ceil(expires_at - time.time())
        if ttl <= 0:
            # Already past expiry; verification fails on its own.
            return
        await self._client.set(self._key(digest), "1", ex=ttl)

    async def is_revoked(self, digest: str) -> bool:
        return bool(await self._client.exists(self._key(digest)))

    def _key(self, digest: str) -> str:
        return f"{self._key_prefix}:{digest}"
