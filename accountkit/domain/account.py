from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(slots=True, frozen=True)
class CredentialRecord:
    """Stored identity for one account; the secret never leaves the store."""

    key: str
    provider: str
    identity: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_payload(self) -> dict[str, Any]:
        """Return the credential snapshot embedded in signed tokens."""
        return {"key": self.key, "provider": self.provider, "identity": self.identity}


@dataclass(slots=True, frozen=True)
class AccessRecord:
    """Scope set granted to an account."""

    key: str
    scopes: frozenset[str] = frozenset()

    def to_payload(self) -> dict[str, Any]:
        return {"key": self.key, "scopes": sorted(self.scopes)}

    def covers(self, required: Any) -> bool:
        """Return ``True`` when every required scope is granted (exact match)."""
        return set(required) <= self.scopes


@dataclass(slots=True, frozen=True)
class AccountToken:
    """Key and signed token returned by register, login and password changes."""

    key: str
    token: str


@dataclass(slots=True, frozen=True)
class AccountProfile:
    """Credential and access snapshot resolved for an identity."""

    key: str
    auth: CredentialRecord
    access: AccessRecord


@dataclass(slots=True, frozen=True)
class VerifiedToken:
    """Decoded token claims paired with the raw token they came from."""

    claims: dict[str, Any]
    token: str

    @property
    def key(self) -> str:
        return self.claims["auth"]["key"]
