"""Signed account tokens backed by PyJWT."""

from __future__ import annotations

import hashlib
import logging
import secrets
import time
from typing import Any, Protocol

import jwt

from ..domain.errors import NotAuthorizedError, TokenExpiredError, TokenRevokedError
from .revocation import InMemoryRevocationList

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"


class RevocationList(Protocol):
    async def revoke(self, digest: str, expires_at: float) -> None: ...

    async def is_revoked(self, digest: str) -> bool: ...


def token_digest(token: str) -> str:
    """Return the SHA-256 hex digest used to track a token in revocation lists."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class JwtTokenService:
    """Sign account snapshots into HS256 JWTs and track invalidated tokens."""

    def __init__(
        self,
        secret: str,
        *,
        issuer: str = "accountkit",
        ttl_seconds: int = 3600,
        revocations: RevocationList | None = None,
    ) -> None:
        if not secret:
            raise ValueError("token secret is required")
        self._secret = secret
        self._issuer = issuer
        self._ttl = ttl_seconds
        self._revocations = revocations or InMemoryRevocationList()

    @property
    def revocations(self) -> RevocationList:
        return self._revocations

    def sign(self, payload: dict[str, Any]) -> str:
        """Encode ``payload`` with issuer, issue time, expiry and a unique id.

        Parameters
        ----------
        payload:
            Snapshot to embed, normally ``{"auth": ..., "access": ...}``.

        Returns
        -------
        str
            The encoded JWT.
        """
        now = int(time.time())
        claims: dict[str, Any] = {
            **payload,
            "iss": self._issuer,
            "iat": now,
            "exp": now + self._ttl,
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(claims, self._secret, algorithm=_ALGORITHM)

    async def verify(self, token: str) -> dict[str, Any]:
        """Decode ``token`` and check it has not been invalidated.

        Raises
        ------
        TokenExpiredError
            The signature is valid but ``exp`` has passed.
        TokenRevokedError
            The token was passed to :meth:`invalidate`.
        NotAuthorizedError
            Any other decoding failure (bad signature, issuer, shape).
        """
        try:
            claims = jwt.decode(token, self._secret, algorithms=[_ALGORITHM], issuer=self._issuer)
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("token expired") from exc
        except jwt.PyJWTError as exc:
            raise NotAuthorizedError(f"invalid token: {exc}") from exc
        if await self._revocations.is_revoked(token_digest(token)):
            raise TokenRevokedError("token has been invalidated")
        return claims

    async def invalidate(self, token: str) -> None:
        """Revoke ``token`` until its own expiry so later verification fails."""
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                issuer=self._issuer,
                options={"verify_exp": False},
            )
        except jwt.PyJWTError as exc:
            raise NotAuthorizedError(f"invalid token: {exc}") from exc
        expires_at = float(claims.get("exp", time.time() + self._ttl))
        await self._revocations.revoke(token_digest(token), expires_at)
        logger.info("token %s invalidated", claims.get("jti"))
