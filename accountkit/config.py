from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the account orchestrator and its collaborators."""

    name: str = os.getenv("ACCOUNTS_NAME", "accounts")
    database_url: str = os.getenv("POSTGRES_URL", "")
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    jwt_issuer: str = os.getenv("JWT_ISSUER", "accountkit")
    jwt_ttl_seconds: int = int(os.getenv("JWT_TTL_SECONDS", "3600"))
    revocation_backend: str = os.getenv("REVOCATION_BACKEND", "memory").lower()
    redis_url: str = os.getenv("REDIS_URL", "")
    bcrypt_rounds: int = int(os.getenv("BCRYPT_ROUNDS", "12"))
    compensate_register: bool = _env_flag("ACCOUNTS_COMPENSATE_REGISTER")

    @property
    def cookie_name(self) -> str:
        return f"{self.name}_access_token"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings()
