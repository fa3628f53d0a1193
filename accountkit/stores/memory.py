"""In-memory credential and access stores."""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, replace
from typing import Iterable, Mapping

from ..domain.account import AccessRecord, CredentialRecord
from ..domain.errors import (
    AccessDeniedError,
    DuplicateIdentityError,
    InvalidCredentialsError,
    NotFoundError,
)
from ..domain.ports import CredentialProvider
from ..security.providers import BasicProvider, provider_registry, resolve_provider


@dataclass(slots=True)
class _StoredCredential:
    record: CredentialRecord
    secret_hash: str


class MemoryCredentialStore:
    """Process-local credential store; uniqueness is enforced under a lock."""

    def __init__(
        self,
        providers: Mapping[str, CredentialProvider] | None = None,
        *,
        rounds: int = 12,
    ) -> None:
        self._providers = dict(providers) if providers else provider_registry(BasicProvider(rounds))
        self._by_key: dict[str, _StoredCredential] = {}
        self._by_identity: dict[tuple[str, str], str] = {}
        self._lock = asyncio.Lock()

    async def create(self, provider: str, identity: str, secret: str) -> CredentialRecord:
        strategy = resolve_provider(self._providers, provider)
        secret_hash = await asyncio.to_thread(strategy.hash_secret, secret)
        async with self._lock:
            if (provider, identity) in self._by_identity:
                raise DuplicateIdentityError("Cannot create account with that identity")
            record = CredentialRecord(key=str(uuid.uuid4()), provider=provider, identity=identity)
            self._by_key[record.key] = _StoredCredential(record, secret_hash)
            self._by_identity[(provider, identity)] = record.key
        return record

    async def verify(self, provider: str, identity: str, secret: str) -> CredentialRecord:
        strategy = resolve_provider(self._providers, provider)
        stored = self._lookup(provider, identity)
        stored_hash = stored.secret_hash if stored else None
        if not await asyncio.to_thread(strategy.check_secret, secret, stored_hash):
            raise InvalidCredentialsError("Invalid identity or secret")
        return stored.record

    async def update(self, key: str, secret: str) -> CredentialRecord:
        stored = self._by_key.get(key)
        if stored is None:
            raise NotFoundError(f"Account {key} not found")
        strategy = resolve_provider(self._providers, stored.record.provider)
        secret_hash = await asyncio.to_thread(strategy.hash_secret, secret)
        self._by_key[key] = replace(stored, secret_hash=secret_hash)
        return stored.record

    async def destroy(self, key: str) -> None:
        async with self._lock:
            stored = self._by_key.pop(key, None)
            if stored is None:
                raise NotFoundError(f"Account {key} not found")
            self._by_identity.pop((stored.record.provider, stored.record.identity), None)

    async def find_one(self, provider: str, identity: str) -> CredentialRecord | None:
        stored = self._lookup(provider, identity)
        return stored.record if stored else None

    def _lookup(self, provider: str, identity: str) -> _StoredCredential | None:
        key = self._by_identity.get((provider, identity))
        return self._by_key.get(key) if key else None


class MemoryAccessStore:
    """Process-local scope sets keyed by account key."""

    def __init__(self) -> None:
        self._records: dict[str, AccessRecord] = {}

    async def create(self, key: str, scopes: Iterable[str]) -> AccessRecord:
        record = AccessRecord(key=key, scopes=frozenset(scopes))
        self._records[key] = record
        return record

    async def get(self, key: str) -> AccessRecord:
        record = self._records.get(key)
        if record is None:
            raise NotFoundError(f"Access record for {key} not found")
        return record

    async def update(self, key: str, scopes: Iterable[str]) -> AccessRecord:
        await self.get(key)
        record = AccessRecord(key=key, scopes=frozenset(scopes))
        self._records[key] = record
        return record

    async def destroy(self, key: str) -> None:
        if self._records.pop(key, None) is None:
            raise NotFoundError(f"Access record for {key} not found")

    async def verify(self, key: str, scopes: Iterable[str]) -> AccessRecord:
        record = await self.get(key)
        if not record.covers(scopes):
            raise AccessDeniedError()
        return record
