"""Wiring of the account service from settings."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from psycopg_pool import AsyncConnectionPool
from redis.asyncio import Redis

from .config import Settings, get_settings
from .domain.hooks import Hooks
from .domain.service import AccountService
from .security.redis_revocation import RedisRevocationList
from .security.revocation import InMemoryRevocationList
from .security.tokens import JwtTokenService
from .stores.memory import MemoryAccessStore, MemoryCredentialStore
from .stores.postgres import PostgresAccessStore, PostgresCredentialStore, ensure_schema

logger = logging.getLogger(__name__)


def build_service(
    settings: Settings | None = None,
    *,
    pool: AsyncConnectionPool | None = None,
    redis_client: Redis | None = None,
    hooks: Hooks | None = None,
) -> AccountService:
    """Assemble an `AccountService`, using Postgres and Redis when handles are given."""
    settings = settings or get_settings()

    if pool is not None:
        credentials = PostgresCredentialStore(pool, rounds=settings.bcrypt_rounds)
        access = PostgresAccessStore(pool)
    else:
        logger.info("account stores using in-memory backend")
        credentials = MemoryCredentialStore(rounds=settings.bcrypt_rounds)
        access = MemoryAccessStore()

    if redis_client is not None:
        revocations = RedisRevocationList(redis_client, key_prefix=f"{settings.name}:revoked")
    else:
        revocations = InMemoryRevocationList()

    tokens = JwtTokenService(
        settings.jwt_secret,
        issuer=settings.jwt_issuer,
        ttl_seconds=settings.jwt_ttl_seconds,
        revocations=revocations,
    )
    return AccountService(
        credentials,
        access,
        tokens,
        name=settings.name,
        hooks=hooks,
        compensate_register=settings.compensate_register,
    )


async def _connect_redis(settings: Settings) -> Redis | None:
    """Return a connected Redis client for the revocation list, or ``None`` to fall back."""
    if settings.revocation_backend != "redis" or not settings.redis_url:
        return None
    client = Redis.from_url(settings.redis_url)
    try:
        # ensure connectivity early to fail fast and fall back
        await client.ping()
    except Exception as exc:
        logger.warning("redis revocation list unavailable, falling back to in-memory: %s", exc)
        await client.aclose()
        return None
    logger.info("revocation list configured for redis backend at %s", settings.redis_url)
    return client


@asynccontextmanager
async def open_account_service(
    settings: Settings | None = None, *, hooks: Hooks | None = None
) -> AsyncIterator[AccountService]:
    """Open the Postgres pool and Redis client the settings ask for, and yield a service."""
    settings = settings or get_settings()
    pool: AsyncConnectionPool | None = None
    if settings.database_url:
        pool = AsyncConnectionPool(settings.database_url, open=False)
        await pool.open()
        await ensure_schema(pool)
    redis_client = await _connect_redis(settings)
    try:
        yield build_service(settings, pool=pool, redis_client=redis_client, hooks=hooks)
    finally:
        if redis_client is not None:
            await redis_client.aclose()
        if pool is not None:
            await pool.close()
