from __future__ import annotations

import pytest

from accountkit.domain.hooks import Hooks
from accountkit.domain.service import AccountService
from accountkit.security.tokens import JwtTokenService
from accountkit.stores.memory import MemoryAccessStore, MemoryCredentialStore

SECRET = "not a secret"

CREDS = {"identity": "user@example.com", "secret": "pass"}


def make_service(
    *,
    hooks: Hooks | None = None,
    access: MemoryAccessStore | None = None,
    ttl_seconds: int = 3600,
    compensate_register: bool = False,
    rounds: int = 4,
) -> AccountService:
    """Build a service over in-memory stores, with a cheap bcrypt cost by default."""
    return AccountService(
        MemoryCredentialStore(rounds=rounds),
        access or MemoryAccessStore(),
        JwtTokenService(SECRET, ttl_seconds=ttl_seconds),
        name="example",
        hooks=hooks,
        compensate_register=compensate_register,
    )


@pytest.fixture
def service() -> AccountService:
    return make_service()
