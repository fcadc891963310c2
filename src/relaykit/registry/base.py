"""Abstract base class for connection registries."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Deregistration:
    """Outcome of removing a connection from the registry.

    Attributes:
        user_id: The user that owned the connection, or ``None`` if the
            connection was not registered.
        last: ``True`` when the removal emptied the user's connection set.
    """

    user_id: str | None = None
    last: bool = False

    @property
    def found(self) -> bool:
        return self.user_id is not None


class ConnectionRegistry(ABC):
    """Maps user identities to their live connection identifiers.

    ``register`` and ``deregister`` are the only mutation surface. Each
    call must be atomic, and the transition signal it returns (first or
    last connection) must be computed in the same critical section as the
    mutation, so two concurrent callers can never both observe the same
    transition.

    Implementations must never perform I/O while holding their internal
    lock. The library ships with ``InMemoryConnectionRegistry`` for
    single-process deployments.
    """

    @abstractmethod
    def register(self, user_id: str, connection_id: str) -> bool:
        """Add *connection_id* to *user_id*'s connections.

        Idempotent for a connection already held by the same user.

        Returns:
            ``True`` if this was the user's first live connection.

        Raises:
            ConnectionOwnershipError: If the connection is registered to
                another user.
        """
        ...

    @abstractmethod
    def deregister(self, connection_id: str) -> Deregistration:
        """Remove *connection_id* from whichever user holds it."""
        ...

    @abstractmethod
    def connections_of(self, user_id: str) -> frozenset[str]:
        """Return a point-in-time snapshot of *user_id*'s connections."""
        ...

    @abstractmethod
    def owner_of(self, connection_id: str) -> str | None:
        """Return the user holding *connection_id*, if any."""
        ...

    @abstractmethod
    def online_users(self) -> frozenset[str]:
        """Return a snapshot of every user with at least one connection."""
        ...

    def is_online(self, user_id: str) -> bool:
        return bool(self.connections_of(user_id))
