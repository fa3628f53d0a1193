"""Lifecycle interceptors run by the account orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

Hook = Callable[[Any], Awaitable[Any]]


async def passthrough(data: Any) -> Any:
    return data


@dataclass(slots=True, frozen=True)
class Hooks:
    """Optional async callbacks invoked at fixed lifecycle boundaries.

    Each hook receives the boundary data and returns the data the flow should
    continue with. Returning ``None`` leaves the data unchanged. Raising aborts
    the enclosing operation and the exception reaches the caller as raised.
    """

    before_register: Optional[Hook] = None
    after_register: Optional[Hook] = None
    before_update: Optional[Hook] = None
    after_update: Optional[Hook] = None
    before_destroy: Optional[Hook] = None

    async def run(self, name: str, data: Any) -> Any:
        """Invoke hook ``name`` and return its result, or ``data`` if it returned ``None``."""
        hook = getattr(self, name) or passthrough
        result = await hook(data)
        return data if result is None else result
