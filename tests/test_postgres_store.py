"""Integration tests against a live Postgres; set POSTGRES_URL to run them."""

from __future__ import annotations

import os
import uuid

import pytest

from accountkit.config import Settings
from accountkit.domain.errors import AccessDeniedError, DuplicateIdentityError, NotFoundError
from accountkit.factory import open_account_service
from accountkit.stores.postgres import PostgresAccessStore, PostgresCredentialStore

POSTGRES_URL = os.environ.get("POSTGRES_URL", "")

pytestmark = pytest.mark.skipif(not POSTGRES_URL, reason="POSTGRES_URL not configured")


def _settings() -> Settings:
    return Settings(
        name="pgtest",
        database_url=POSTGRES_URL,
        jwt_secret="not a secret",
        revocation_backend="memory",
        redis_url="",
        bcrypt_rounds=4,
        compensate_register=False,
    )


@pytest.mark.asyncio
async def test_account_lifecycle_on_postgres():
    identity = f"{uuid.uuid4()}@example.com"
    async with open_account_service(_settings()) as service:
        assert isinstance(service.credentials, PostgresCredentialStore)
        assert isinstance(service.access, PostgresAccessStore)

        account = await service.register({"identity": identity, "secret": "pass", "scopes": ["site:read"]})
        await service.authorize(account.key, ["site:read"])
        with pytest.raises(AccessDeniedError):
            await service.authorize(account.key, ["site:nope"])

        await service.update_scopes(account.key, ["site:write"])
        profile = await service.find_by_identity(identity)
        assert profile.access.scopes == {"site:write"}

        updated = await service.update_password(
            {"identity": identity, "secret": "pass", "new_secret": "next", "raw_token": account.token}
        )
        assert updated.key == account.key
        await service.login({"identity": identity, "secret": "next"})

        await service.destroy(account.key)
        with pytest.raises(NotFoundError):
            await service.find_by_identity(identity)


@pytest.mark.asyncio
async def test_postgres_credentials_enforce_unique_identity():
    identity = f"{uuid.uuid4()}@example.com"
    async with open_account_service(_settings()) as service:
        record = await service.credentials.create("basic", identity, "pass")
        with pytest.raises(DuplicateIdentityError):
            await service.credentials.create("basic", identity, "pass")
        await service.credentials.destroy(record.key)
