"""Per-connection async locking for sequential event processing."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class ConnectionLockManager(ABC):
    """Abstract base for per-connection locking.

    The engine holds a connection's lock while one of its inbound events
    is processed, so events from the same connection complete in the
    order they arrived even when a transport dispatches them
    concurrently. Locks for different connections are independent.
    """

    @abstractmethod
    @asynccontextmanager
    async def locked(self, connection_id: str) -> AsyncIterator[None]:
        """Acquire the exclusive lock for *connection_id*."""
        yield  # pragma: no cover


class InMemoryConnectionLockManager(ConnectionLockManager):
    """In-process per-connection ``asyncio.Lock`` objects.

    ``asyncio.Lock`` wakes waiters in FIFO order, which preserves arrival
    order. A lock is dropped as soon as nobody holds or waits for it, so
    closed connections leave nothing behind.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refcounts: dict[str, int] = {}

    def _acquire_ref(self, connection_id: str) -> asyncio.Lock:
        lock = self._locks.get(connection_id)
        if lock is None:
            lock = self._locks[connection_id] = asyncio.Lock()
        self._refcounts[connection_id] = self._refcounts.get(connection_id, 0) + 1
        return lock

    def _release_ref(self, connection_id: str) -> None:
        count = self._refcounts.get(connection_id, 0) - 1
        if count <= 0:
            self._refcounts.pop(connection_id, None)
            self._locks.pop(connection_id, None)
        else:
            self._refcounts[connection_id] = count

    @asynccontextmanager
    async def locked(self, connection_id: str) -> AsyncIterator[None]:
        lock = self._acquire_ref(connection_id)
        try:
            async with lock:
                yield
        finally:
            self._release_ref(connection_id)

    @property
    def size(self) -> int:
        """Return the number of locks currently in use."""
        return len(self._locks)
