"""In-memory connection registry."""

from __future__ import annotations

import logging
import threading

from relaykit.core.errors import ConnectionOwnershipError
from relaykit.registry.base import ConnectionRegistry, Deregistration

logger = logging.getLogger("relaykit.registry")


class InMemoryConnectionRegistry(ConnectionRegistry):
    """Dict-based registry guarded by a single lock.

    Keeps a forward map (user -> connections) and a reverse map
    (connection -> user) so that ``deregister`` is O(1). A user key exists
    only while its connection set is non-empty.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_user: dict[str, set[str]] = {}
        self._owner: dict[str, str] = {}

    def register(self, user_id: str, connection_id: str) -> bool:
        with self._lock:
            owner = self._owner.get(connection_id)
            if owner is not None and owner != user_id:
                raise ConnectionOwnershipError(connection_id, owner)

            connections = self._by_user.get(user_id)
            first = connections is None
            if connections is None:
                connections = self._by_user[user_id] = set()
            connections.add(connection_id)
            self._owner[connection_id] = user_id

        logger.debug(
            "Registered connection %s for user %s",
            connection_id,
            user_id,
            extra={"user_id": user_id, "connection_id": connection_id, "first": first},
        )
        return first

    def deregister(self, connection_id: str) -> Deregistration:
        with self._lock:
            user_id = self._owner.pop(connection_id, None)
            if user_id is None:
                return Deregistration()

            connections = self._by_user[user_id]
            connections.discard(connection_id)
            last = not connections
            if last:
                del self._by_user[user_id]

        logger.debug(
            "Deregistered connection %s for user %s",
            connection_id,
            user_id,
            extra={"user_id": user_id, "connection_id": connection_id, "last": last},
        )
        return Deregistration(user_id=user_id, last=last)

    def connections_of(self, user_id: str) -> frozenset[str]:
        with self._lock:
            return frozenset(self._by_user.get(user_id, ()))

    def owner_of(self, connection_id: str) -> str | None:
        with self._lock:
            return self._owner.get(connection_id)

    def online_users(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._by_user)

    @property
    def connection_count(self) -> int:
        """Return the number of live connections across all users."""
        with self._lock:
            return len(self._owner)

    @property
    def user_count(self) -> int:
        """Return the number of users with at least one connection."""
        with self._lock:
            return len(self._by_user)
