"""Error taxonomy raised by the account orchestrator and its collaborators."""

from __future__ import annotations

from typing import Any, Optional


class AccountError(Exception):
    """Base class for account errors mapped to HTTP responses by host layers."""

    status_code: int = 400
    error_code: str = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        detail: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.detail = detail or {}


class ValidationError(AccountError):
    """A required field is missing or malformed (400)."""

    status_code = 400
    error_code = "validation_error"


class DuplicateIdentityError(AccountError):
    """An account already exists for the identity (409)."""

    status_code = 409
    error_code = "conflict"


class InvalidCredentialsError(AccountError):
    """Identity and secret do not match a stored credential (401)."""

    status_code = 401
    error_code = "invalid_credentials"


class NotAuthorizedError(AccountError):
    """Token missing, malformed or failing verification (401)."""

    status_code = 401
    error_code = "unauthorized"


class TokenExpiredError(NotAuthorizedError):
    """Token signature is valid but its lifetime has elapsed."""

    error_code = "token_expired"


class TokenRevokedError(NotAuthorizedError):
    """Token was explicitly invalidated."""

    error_code = "token_revoked"


class AccessDeniedError(AccountError):
    """Account scopes do not cover the required scopes (403)."""

    status_code = 403
    error_code = "forbidden"

    def __init__(self, message: str = "Access denied", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class NotFoundError(AccountError):
    """Identity or account no longer resolvable (404)."""

    status_code = 404
    error_code = "not_found"


__all__ = [
    "AccountError",
    "ValidationError",
    "DuplicateIdentityError",
    "InvalidCredentialsError",
    "NotAuthorizedError",
    "TokenExpiredError",
    "TokenRevokedError",
    "AccessDeniedError",
    "NotFoundError",
]
