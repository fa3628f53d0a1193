"""Collaborator contracts the account orchestrator depends on."""

from __future__ import annotations

from typing import Any, Iterable, Protocol

from .account import AccessRecord, CredentialRecord


class CredentialProvider(Protocol):
    """Credential verification strategy selected by its ``name`` tag."""

    name: str

    def hash_secret(self, secret: str) -> str:
        """Return the stored, verifiable form of ``secret``."""

    def check_secret(self, secret: str, stored: str | None) -> bool:
        """Return ``True`` when ``secret`` matches the stored form."""


class CredentialStore(Protocol):
    """Persists one credential record per identity."""

    async def create(self, provider: str, identity: str, secret: str) -> CredentialRecord:
        """Create a record and mint its account key.

        Raises ``DuplicateIdentityError`` when the identity is taken.
        """

    async def verify(self, provider: str, identity: str, secret: str) -> CredentialRecord:
        """Return the matching record or raise ``InvalidCredentialsError``."""

    async def update(self, key: str, secret: str) -> CredentialRecord:
        """Replace the stored secret for ``key``."""

    async def destroy(self, key: str) -> None:
        """Delete the record or raise ``NotFoundError``."""

    async def find_one(self, provider: str, identity: str) -> CredentialRecord | None:
        """Return the record for ``identity`` or ``None``."""


class AccessStore(Protocol):
    """Persists the scope set granted to each account key."""

    async def create(self, key: str, scopes: Iterable[str]) -> AccessRecord:
        ...

    async def get(self, key: str) -> AccessRecord:
        """Return the record or raise ``NotFoundError``."""

    async def update(self, key: str, scopes: Iterable[str]) -> AccessRecord:
        """Replace the scope set wholesale."""

    async def destroy(self, key: str) -> None:
        ...

    async def verify(self, key: str, scopes: Iterable[str]) -> AccessRecord:
        """Return the record or raise ``AccessDeniedError`` if any scope is missing."""


class TokenService(Protocol):
    """Signs, verifies and invalidates opaque bearer tokens."""

    def sign(self, payload: dict[str, Any]) -> str:
        ...

    async def verify(self, token: str) -> dict[str, Any]:
        """Return the decoded payload.

        Raises ``TokenExpiredError``, ``TokenRevokedError`` or
        ``NotAuthorizedError``.
        """

    async def invalidate(self, token: str) -> None:
        """Make every later ``verify`` of ``token`` fail."""


__all__ = ["AccessStore", "CredentialProvider", "CredentialStore", "TokenService"]
