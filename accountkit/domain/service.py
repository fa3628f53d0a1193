"""Account service orchestrating credential, access and token collaborators."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Mapping

from pydantic import ValidationError as SchemaError

from .. import http
from ..schemas import TokenClaims
from .account import AccessRecord, AccountProfile, AccountToken, CredentialRecord, VerifiedToken
from .contracts import LoginInput, RegisterInput, UpdatePasswordInput
from .errors import (
    AccountError,
    DuplicateIdentityError,
    NotAuthorizedError,
    NotFoundError,
    TokenExpiredError,
    ValidationError,
)
from .hooks import Hooks
from .ports import AccessStore, CredentialStore, TokenService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _step(name: str, key: str | None = None) -> AsyncIterator[None]:
    """Tag failures of a collaborator call with the step that raised them."""
    try:
        yield
    except Exception as exc:
        logger.warning("account step %s failed for key=%s: %s", name, key, exc)
        if isinstance(exc, AccountError):
            exc.detail.setdefault("step", name)
        raise


def _require_key(key: Any) -> str:
    if not isinstance(key, str) or not key:
        raise ValidationError("key string is required", detail={"field": "key"})
    return key


def _scope_list(scopes: Iterable[str]) -> list[str]:
    if isinstance(scopes, str) or scopes is None:
        raise ValidationError("scopes must be a collection of strings", detail={"field": "scopes"})
    return list(scopes)


class AccountService:
    """Unified account API over three independently owned stores.

    Every operation is a strictly ordered chain of awaits. Nothing is retried
    and multi-store writes are not transactional: when a later step fails the
    earlier writes stay applied, the failing step is logged and recorded in
    ``exc.detail["step"]``. ``compensate_register`` opts in to removing the
    credential record when access creation fails during registration.

    The duplicate identity check in :meth:`register` is advisory; two
    concurrent registrations can both pass it, so the credential store must
    enforce uniqueness itself.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        access: AccessStore,
        tokens: TokenService,
        *,
        name: str = "accounts",
        hooks: Hooks | None = None,
        compensate_register: bool = False,
    ) -> None:
        """Store collaborators and construction-time configuration."""
        self._credentials = credentials
        self._access = access
        self._tokens = tokens
        self._name = name
        self._hooks = hooks or Hooks()
        self._compensate_register = compensate_register

    @property
    def credentials(self) -> CredentialStore:
        return self._credentials

    @property
    def access(self) -> AccessStore:
        return self._access

    @property
    def tokens(self) -> TokenService:
        return self._tokens

    @property
    def name(self) -> str:
        return self._name

    # ------------------------------------------------------------------
    # Account lifecycle
    # ------------------------------------------------------------------

    async def register(self, payload: RegisterInput | Mapping[str, Any]) -> Any:
        """Create credential and access records and return ``after_register``'s result.

        The default ``after_register`` hook returns an :class:`AccountToken`.
        """
        data = payload.validate() if isinstance(payload, RegisterInput) else RegisterInput.from_mapping(payload)
        data = data.merge(await self._hooks.run("before_register", data))

        if await self._credentials.find_one(data.provider, data.identity) is not None:
            raise DuplicateIdentityError("Cannot create account with that identity")

        async with _step("register.credentials_create"):
            record = await self._credentials.create(data.provider, data.identity, data.secret)
        try:
            async with _step("register.access_create", record.key):
                access = await self._access.create(record.key, data.scopes)
        except Exception:
            if self._compensate_register:
                await self._discard_credentials(record.key)
            raise

        token = self._sign(record, access.to_payload())
        logger.info("account %s registered", record.key)
        return await self._hooks.run("after_register", AccountToken(key=record.key, token=token))

    async def login(self, payload: LoginInput | Mapping[str, Any]) -> AccountToken:
        """Verify credentials and return a fresh token for the account."""
        data = payload.validate() if isinstance(payload, LoginInput) else LoginInput.from_mapping(payload)
        record = await self._credentials.verify(data.provider, data.identity, data.secret)
        access = await self._access.get(record.key)
        token = self._sign(record, access.to_payload())
        logger.info("account %s logged in", record.key)
        return AccountToken(key=record.key, token=token)

    async def logout(self, token: str) -> None:
        """Invalidate ``token``; an already expired token counts as logged out."""
        try:
            await self._tokens.verify(token)
        except TokenExpiredError:
            logger.debug("logout with expired token, nothing to invalidate")
            return
        await self._tokens.invalidate(token)

    async def destroy(self, key: str) -> str:
        """Remove the credential record, then the access record, and return ``key``.

        The first failure stops the sequence; a failed access removal leaves the
        credential record already deleted.
        """
        key = _require_key(key)
        await self._hooks.run("before_destroy", key)
        async with _step("destroy.credentials", key):
            await self._credentials.destroy(key)
        async with _step("destroy.access", key):
            await self._access.destroy(key)
        logger.info("account %s destroyed", key)
        return key

    async def update_password(self, payload: UpdatePasswordInput | Mapping[str, Any]) -> Any:
        """Change the secret, re-sign with the caller's access snapshot, revoke the old token.

        The old token is invalidated only after the new one is signed, so the
        caller always holds at least one valid token.
        """
        data = self._password_input(payload, require_token=True)
        data = data.merge(await self._hooks.run("before_update", data)).validate(require_token=True)

        record = await self._credentials.verify(data.provider, data.identity, data.secret)
        current = await self._tokens.verify(data.raw_token)
        if current.get("auth", {}).get("key") != record.key:
            raise NotAuthorizedError("token does not belong to this account")

        updated = await self._credentials.update(record.key, data.new_secret)
        token = self._sign(updated, current["access"])
        await self._tokens.invalidate(data.raw_token)
        logger.info("account %s password updated", updated.key)
        return await self._hooks.run("after_update", AccountToken(key=updated.key, token=token))

    async def reset_password(self, payload: UpdatePasswordInput | Mapping[str, Any]) -> Any:
        """Change the secret after re-verifying it; issued tokens stay valid."""
        data = self._password_input(payload, require_token=False)
        data = data.merge(await self._hooks.run("before_update", data)).validate(require_token=False)

        record = await self._credentials.verify(data.provider, data.identity, data.secret)
        updated = await self._credentials.update(record.key, data.new_secret)
        access = await self._access.get(updated.key)
        token = self._sign(updated, access.to_payload())
        logger.info("account %s password reset", updated.key)
        return await self._hooks.run("after_update", AccountToken(key=updated.key, token=token))

    # ------------------------------------------------------------------
    # Lookups and authorization
    # ------------------------------------------------------------------

    async def find_by_identity(self, identity: str, provider: str = "basic") -> AccountProfile:
        if not isinstance(identity, str) or not identity:
            raise ValidationError("identity string is required", detail={"field": "identity"})
        record = await self._credentials.find_one(provider, identity)
        if record is None:
            raise NotFoundError(f"Account with identity {identity} not found")
        access = await self._access.get(record.key)
        return AccountProfile(key=record.key, auth=record, access=access)

    async def authorize(self, key: str, scopes: Iterable[str]) -> AccessRecord:
        """Raise ``AccessDeniedError`` unless ``key`` holds every scope in ``scopes``."""
        return await self._access.verify(_require_key(key), _scope_list(scopes))

    async def authorize_by_identity(
        self, identity: str, scopes: Iterable[str], provider: str = "basic"
    ) -> AccessRecord:
        profile = await self.find_by_identity(identity, provider)
        return await self._access.verify(profile.key, _scope_list(scopes))

    async def update_scopes(self, key: str, scopes: Iterable[str]) -> AccessRecord:
        """Replace the scope set of ``key``; tokens already issued keep their snapshot."""
        return await self._access.update(_require_key(key), _scope_list(scopes))

    # ------------------------------------------------------------------
    # Tokens and HTTP helpers
    # ------------------------------------------------------------------

    async def verify_token(self, token: Any) -> VerifiedToken:
        if not token or not isinstance(token, str):
            raise NotAuthorizedError("Not Authorized: token is required")
        claims = await self._tokens.verify(token)
        return VerifiedToken(claims=claims, token=token)

    async def verify(self, request: Any) -> VerifiedToken:
        """Authenticate ``request`` and confirm its account still exists."""
        verified = await self.verify_token(self.get_token(request))
        try:
            claims = TokenClaims.model_validate(verified.claims)
        except SchemaError as exc:
            raise NotAuthorizedError("Not Authorized: malformed token claims") from exc
        record = await self._credentials.find_one(claims.auth.provider, claims.auth.identity)
        if record is None or record.key != claims.auth.key:
            raise NotFoundError("Account not found")
        return verified

    def get_token(self, request: Any) -> str | None:
        return http.get_token(request, self._name)

    def set_cookie(self, response: Any, *, hostname: str, token: str) -> None:
        http.set_cookie(response, hostname=hostname, token=token, name=self._name)

    def remove_cookie(self, response: Any) -> None:
        http.remove_cookie(response, name=self._name)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _sign(self, record: CredentialRecord, access: Mapping[str, Any]) -> str:
        return self._tokens.sign({"auth": record.to_payload(), "access": dict(access)})

    def _password_input(
        self, payload: UpdatePasswordInput | Mapping[str, Any], *, require_token: bool
    ) -> UpdatePasswordInput:
        data = payload if isinstance(payload, UpdatePasswordInput) else UpdatePasswordInput.from_mapping(payload)
        return data.validate(require_token=require_token)

    async def _discard_credentials(self, key: str) -> None:
        """Best-effort removal of a credential record orphaned by a failed registration."""
        try:
            await self._credentials.destroy(key)
        except Exception:
            logger.exception("could not remove orphaned credentials for key=%s", key)
        else:
            logger.warning("removed orphaned credentials for key=%s", key)
