"""Postgres-backed credential and access stores."""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Iterable, Mapping

from psycopg import errors
from psycopg.rows import tuple_row
from psycopg_pool import AsyncConnectionPool

from ..domain.account import AccessRecord, CredentialRecord
from ..domain.errors import (
    AccessDeniedError,
    DuplicateIdentityError,
    InvalidCredentialsError,
    NotFoundError,
)
from ..domain.ports import CredentialProvider
from ..security.providers import BasicProvider, provider_registry, resolve_provider

SCHEMA = """
CREATE TABLE IF NOT EXISTS account_credentials (
    account_key TEXT PRIMARY KEY,
    provider TEXT NOT NULL,
    identity TEXT NOT NULL,
    secret_hash TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL,
    UNIQUE (provider, identity)
);
CREATE TABLE IF NOT EXISTS account_access (
    account_key TEXT PRIMARY KEY,
    scopes TEXT[] NOT NULL DEFAULT '{}'
);
"""


async def ensure_schema(pool: AsyncConnectionPool) -> None:
    """Create the credential and access tables if they are missing."""
    async with pool.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(SCHEMA)
        await conn.commit()


class PostgresCredentialStore:
    """Credential records in ``account_credentials``; the unique index backs identity uniqueness."""

    def __init__(
        self,
        pool: AsyncConnectionPool,
        providers: Mapping[str, CredentialProvider] | None = None,
        *,
        rounds: int = 12,
    ) -> None:
        """Store the connection pool and the provider strategies used for hashing."""
        self._pool = pool
        self._providers = dict(providers) if providers else provider_registry(BasicProvider(rounds))

    async def create(self, provider: str, identity: str, secret: str) -> CredentialRecord:
        """Insert a credential row and return it with a freshly minted key."""
        strategy = resolve_provider(self._providers, provider)
        secret_hash = await asyncio.to_thread(strategy.hash_secret, secret)
        key = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=tuple_row) as cur:
                    await cur.execute(
                        """
                        INSERT INTO account_credentials
                            (account_key, provider, identity, secret_hash, created_at, updated_at)
                        VALUES (%s, %s, %s, %s, %s, %s)
                        RETURNING account_key, provider, identity, created_at
                        """,
                        (key, provider, identity, secret_hash, now, now),
                    )
                    row = await cur.fetchone()
                await conn.commit()
        except errors.UniqueViolation as exc:
            raise DuplicateIdentityError("Cannot create account with that identity") from exc
        return self._map_record(row)

    async def verify(self, provider: str, identity: str, secret: str) -> CredentialRecord:
        """Return the record whose stored hash matches ``secret``."""
        strategy = resolve_provider(self._providers, provider)
        row = await self._fetch_by_identity(provider, identity)
        stored_hash = row[4] if row else None
        if not await asyncio.to_thread(strategy.check_secret, secret, stored_hash):
            raise InvalidCredentialsError("Invalid identity or secret")
        return self._map_record(row)

    async def update(self, key: str, secret: str) -> CredentialRecord:
        """Re-hash and store a new secret for ``key``.

        The hash is computed off the event loop before a connection is taken
        for the write.
        """
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=tuple_row) as cur:
                await cur.execute(
                    "SELECT provider FROM account_credentials WHERE account_key = %s",
                    (key,),
                )
                found = await cur.fetchone()
        if not found:
            raise NotFoundError(f"Account {key} not found")
        strategy = resolve_provider(self._providers, found[0])
        secret_hash = await asyncio.to_thread(strategy.hash_secret, secret)
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=tuple_row) as cur:
                await cur.execute(
                    """
                    UPDATE account_credentials
                    SET secret_hash = %s, updated_at = %s
                    WHERE account_key = %s
                    RETURNING account_key, provider, identity, created_at
                    """,
                    (secret_hash, datetime.now(timezone.utc), key),
                )
                row = await cur.fetchone()
            await conn.commit()
        if not row:
            raise NotFoundError(f"Account {key} not found")
        return self._map_record(row)

    async def destroy(self, key: str) -> None:
        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("DELETE FROM account_credentials WHERE account_key = %s", (key,))
                deleted = cur.rowcount
            await conn.commit()
        if not deleted:
            raise NotFoundError(f"Account {key} not found")

    async def find_one(self, provider: str, identity: str) -> CredentialRecord | None:
        row = await self._fetch_by_identity(provider, identity)
        return self._map_record(row) if row else None

    async def _fetch_by_identity(self, provider: str, identity: str) -> tuple | None:
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=tuple_row) as cur:
                await cur.execute(
                    """
                    SELECT account_key, provider, identity, created_at, secret_hash
                    FROM account_credentials
                    WHERE provider = %s AND identity = %s
                    """,
                    (provider, identity),
                )
                return await cur.fetchone()

    def _map_record(self, row: tuple) -> CredentialRecord:
        """Convert a raw database tuple into a ``CredentialRecord``."""
        return CredentialRecord(key=row[0], provider=row[1], identity=row[2], created_at=row[3])


class PostgresAccessStore:
    """Scope sets stored as ``TEXT[]`` in ``account_access``."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def create(self, key: str, scopes: Iterable[str]) -> AccessRecord:
        return await self._write(
            """
            INSERT INTO account_access (account_key, scopes)
            VALUES (%s, %s)
            RETURNING account_key, scopes
            """,
            (key, sorted(set(scopes))),
        )

    async def get(self, key: str) -> AccessRecord:
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=tuple_row) as cur:
                await cur.execute(
                    "SELECT account_key, scopes FROM account_access WHERE account_key = %s",
                    (key,),
                )
                row = await cur.fetchone()
        if not row:
            raise NotFoundError(f"Access record for {key} not found")
        return AccessRecord(key=row[0], scopes=frozenset(row[1] or ()))

    async def update(self, key: str, scopes: Iterable[str]) -> AccessRecord:
        return await self._write(
            """
            UPDATE account_access SET scopes = %s
            WHERE account_key = %s
            RETURNING account_key, scopes
            """,
            (sorted(set(scopes)), key),
            missing_key=key,
        )

    async def destroy(self, key: str) -> None:
        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("DELETE FROM account_access WHERE account_key = %s", (key,))
                deleted = cur.rowcount
            await conn.commit()
        if not deleted:
            raise NotFoundError(f"Access record for {key} not found")

    async def verify(self, key: str, scopes: Iterable[str]) -> AccessRecord:
        record = await self.get(key)
        if not record.covers(scopes):
            raise AccessDeniedError()
        return record

    async def _write(self, query: str, params: tuple, *, missing_key: str | None = None) -> AccessRecord:
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=tuple_row) as cur:
                await cur.execute(query, params)
                row = await cur.fetchone()
            await conn.commit()
        if not row:
            raise NotFoundError(f"Access record for {missing_key} not found")
        return AccessRecord(key=row[0], scopes=frozenset(row[1] or ()))
