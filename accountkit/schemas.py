"""Pydantic models describing the claims carried by account tokens."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AuthClaims(BaseModel):
    model_config = ConfigDict(extra="allow")

    key: str
    provider: str = "basic"
    identity: str


class AccessClaims(BaseModel):
    model_config = ConfigDict(extra="allow")

    key: str
    scopes: list[str] = Field(default_factory=list)


class TokenClaims(BaseModel):
    """Decoded account token: credential snapshot, access snapshot, registered JWT claims."""

    model_config = ConfigDict(extra="allow")

    auth: AuthClaims
    access: AccessClaims
    iss: str | None = None
    iat: int | None = None
    exp: int | None = None
    jti: str | None = None
