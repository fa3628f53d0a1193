"""FastAPI dependency helpers for hosts that expose the account service over HTTP."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable

from fastapi import HTTPException, Request

from ..domain.account import VerifiedToken
from ..domain.errors import AccountError
from ..domain.service import AccountService

logger = logging.getLogger(__name__)


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def http_error_from_account_error(exc: AccountError) -> HTTPException:
    """Translate an account error into an `HTTPException` carrying its status and code."""
    return HTTPException(
        status_code=exc.status_code,
        detail={"code": exc.error_code, "message": exc.message},
    )


async def get_current_account(request: Request) -> VerifiedToken:
    """Require a valid token for a live account.

    Use as a FastAPI dependency:
        @router.get("/me")
        async def me(account: VerifiedToken = Depends(get_current_account)): ...
    """
    service = get_service(request)
    try:
        return await service.verify(request)
    except AccountError as exc:
        logger.info("request rejected: %s", exc.message)
        raise http_error_from_account_error(exc) from exc


def require_scopes(*scopes: str) -> Callable[[Request], Awaitable[VerifiedToken]]:
    """Build a dependency that authenticates the request and checks live scopes."""
    required: Iterable[str] = tuple(scopes)

    async def dependency(request: Request) -> VerifiedToken:
        account = await get_current_account(request)
        try:
            await get_service(request).authorize(account.key, required)
        except AccountError as exc:
            raise http_error_from_account_error(exc) from exc
        return account

    return dependency
