"""In-process transport that records outbound frames."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from relaykit.transport.base import Transport

logger = logging.getLogger("relaykit.transport.memory")


@dataclass(frozen=True)
class SentFrame:
    """An outbound event captured by ``InMemoryTransport``."""

    connection_id: str
    event: str
    payload: Any


class InMemoryTransport(Transport):
    """Transport without sockets, for development and testing.

    Connections are plain IDs. ``open``/``close_connection``/``emit`` drive
    the bound handler the way a socket server would; every outbound event
    is appended to ``sent``.
    """

    def __init__(self) -> None:
        super().__init__()
        self._open: dict[str, None] = {}
        self.sent: list[SentFrame] = []

    @property
    def name(self) -> str:
        return "memory"

    @property
    def open_connections(self) -> list[str]:
        return list(self._open)

    async def open(self, connection_id: str | None = None) -> str:
        """Open a connection and notify the handler. Returns its ID."""
        connection_id = connection_id or uuid4().hex
        self._open[connection_id] = None
        await self.handler.on_connection_opened(connection_id)
        return connection_id

    async def close_connection(self, connection_id: str) -> None:
        """Close a connection and notify the handler."""
        if connection_id not in self._open:
            return
        del self._open[connection_id]
        await self.handler.on_connection_closed(connection_id)

    async def emit(
        self,
        connection_id: str,
        event: str,
        payload: Any = None,
        *,
        expect_ack: bool = False,
    ) -> list[dict[str, Any]]:
        """Deliver an inbound event from *connection_id* to the handler.

        Returns:
            Every acknowledgment payload the handler produced, in order.
            Empty when ``expect_ack`` is false.
        """
        acks: list[dict[str, Any]] = []
        ack = acks.append if expect_ack else None
        await self.handler.handle_event(connection_id, event, payload, ack)
        return acks

    async def send_to_connection(self, connection_id: str, event: str, payload: Any) -> None:
        if connection_id not in self._open:
            logger.debug("Dropping %s for closed connection %s", event, connection_id)
            return
        self.sent.append(SentFrame(connection_id, event, payload))

    async def broadcast_except(self, connection_id: str, event: str, payload: Any) -> None:
        for target in list(self._open):
            if target != connection_id:
                await self.send_to_connection(target, event, payload)

    def frames(self, connection_id: str | None = None, event: str | None = None) -> list[SentFrame]:
        """Return recorded frames filtered by connection and/or event name."""
        return [
            f
            for f in self.sent
            if (connection_id is None or f.connection_id == connection_id)
            and (event is None or f.event == event)
        ]

    def reset(self) -> None:
        """Forget recorded frames."""
        self.sent.clear()
