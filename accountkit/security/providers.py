"""Credential provider variants, selected by their ``name`` tag."""

from __future__ import annotations

from typing import Mapping

from ..domain.errors import ValidationError
from ..domain.ports import CredentialProvider
from .passwords import hash_password, verify_password


class BasicProvider:
    """Identity plus password, verified against a bcrypt hash."""

    name = "basic"

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds
        # Hash of a throwaway secret so unknown identities cost the same as wrong passwords.
        self._dummy_hash = hash_password("accountkit-timing-dummy", rounds)

    def hash_secret(self, secret: str) -> str:
        return hash_password(secret, self._rounds)

    def check_secret(self, secret: str, stored: str | None) -> bool:
        if stored is None:
            verify_password(secret, self._dummy_hash)
            return False
        return verify_password(secret, stored)


def provider_registry(*providers: CredentialProvider) -> dict[str, CredentialProvider]:
    """Index providers by tag."""
    return {provider.name: provider for provider in providers}


def resolve_provider(
    providers: Mapping[str, CredentialProvider], name: str
) -> CredentialProvider:
    try:
        return providers[name]
    except KeyError:
        raise ValidationError(f"unknown credential provider {name!r}", detail={"field": "provider"}) from None
