"""Password hashing for the reference credential stores (bcrypt)."""

from __future__ import annotations

import bcrypt

# bcrypt ignores input past 72 bytes.
MAX_SECRET_BYTES = 72


def hash_password(plain: str, rounds: int = 12) -> str:
    """Return a bcrypt hash of ``plain`` using ``rounds`` as the cost factor."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return ``True`` if ``plain`` matches the bcrypt ``hashed`` value."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False
