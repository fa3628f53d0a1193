"""Account lifecycle orchestration over credential, access and token stores."""

from .config import Settings, get_settings
from .domain.account import AccessRecord, AccountProfile, AccountToken, CredentialRecord, VerifiedToken
from .domain.contracts import LoginInput, RegisterInput, UpdatePasswordInput
from .domain.errors import (
    AccessDeniedError,
    AccountError,
    DuplicateIdentityError,
    InvalidCredentialsError,
    NotAuthorizedError,
    NotFoundError,
    TokenExpiredError,
    TokenRevokedError,
    ValidationError,
)
from .domain.hooks import Hooks
from .domain.service import AccountService
from .factory import build_service, open_account_service

__all__ = [
    "AccessDeniedError",
    "AccessRecord",
    "AccountError",
    "AccountProfile",
    "AccountService",
    "AccountToken",
    "CredentialRecord",
    "DuplicateIdentityError",
    "Hooks",
    "InvalidCredentialsError",
    "LoginInput",
    "NotAuthorizedError",
    "NotFoundError",
    "RegisterInput",
    "Settings",
    "TokenExpiredError",
    "TokenRevokedError",
    "UpdatePasswordInput",
    "ValidationError",
    "VerifiedToken",
    "build_service",
    "get_settings",
    "open_account_service",
]
