"""Abstract base class for connection transports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

# Acknowledgment callback: receives the ack payload, may be sync or async.
AckFn = Callable[[dict[str, Any]], Awaitable[None] | None]


class TransportHandler(Protocol):
    """The inbound primitives a transport drives (implemented by ``RelayKit``)."""

    async def on_connection_opened(self, connection_id: str) -> None: ...

    async def on_connection_closed(self, connection_id: str) -> None: ...

    async def handle_event(
        self,
        connection_id: str,
        event: str,
        payload: Any,
        ack: AckFn | None = None,
    ) -> None: ...


class Transport(ABC):
    """Base class for socket transports.

    A transport owns the live connections: it assigns connection IDs,
    reports opens and closes to its bound handler, forwards named inbound
    events (with an optional acknowledgment callback), and delivers
    outbound events. Handshake, origin policy, and reconnection are the
    transport's concern, never the engine's.

    Transports should forward the events of one connection sequentially,
    awaiting each ``handle_event`` before reading the next frame.
    """

    def __init__(self) -> None:
        self._handler: TransportHandler | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Transport name for logging."""
        ...

    def bind(self, handler: TransportHandler) -> None:
        """Attach the handler that receives connection lifecycle and events."""
        self._handler = handler

    @property
    def handler(self) -> TransportHandler:
        if self._handler is None:
            raise RuntimeError(f"Transport {self.name} is not bound to a handler")
        return self._handler

    @abstractmethod
    async def send_to_connection(self, connection_id: str, event: str, payload: Any) -> None:
        """Send a named event to a single connection.

        Sending to a connection that has already gone away is a silent no-op.
        Other delivery failures raise.
        """
        ...

    @abstractmethod
    async def broadcast_except(self, connection_id: str, event: str, payload: Any) -> None:
        """Send a named event to every open connection except *connection_id*."""
        ...

    async def close(self) -> None:
        """Release transport resources.

        Override this method in subclasses that need cleanup.
        The default implementation does nothing.
        """
        return None
