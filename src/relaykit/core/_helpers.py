"""Internal helpers shared across engine components."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

from relaykit.core.errors import StorageUnavailableError

# Framework event emitter: (event_type, **fields) -> None
EmitFn = Callable[..., Coroutine[Any, Any, None]]

T = TypeVar("T")


async def noop_emit(event_type: str, **fields: Any) -> None:
    return None


async def guarded(operation: str, call: Awaitable[T]) -> T:
    """Await a storage call, converting any failure to ``StorageUnavailableError``."""
    try:
        return await call
    except Exception as exc:
        raise StorageUnavailableError(f"{operation} failed: {exc}") from exc
