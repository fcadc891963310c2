"""WebSocket server transport."""

from __future__ import annotations

import json
import logging
from http import HTTPStatus
from typing import Any
from uuid import uuid4

from websockets.asyncio.server import Server, ServerConnection, broadcast, serve
from websockets.exceptions import ConnectionClosed
from websockets.http11 import Request, Response

from relaykit.transport.base import AckFn, Transport
from relaykit.transport.config import WebSocketServerConfig

logger = logging.getLogger("relaykit.transport.websocket")


class WebSocketServerTransport(Transport):
    """Serves relay clients over WebSocket with JSON frames.

    Protocol:
    - Client sends: ``{"event": "send-message", "data": {...}, "ack": 7}``
      (``ack`` is optional; any JSON scalar is echoed back).
    - Server acks: ``{"event": "ack", "ack": 7, "data": {"ok": true}}``
    - Server sends: ``{"event": "receive-message", "data": {...}}``

    Each connection gets a fresh ID and a receive loop that forwards its
    frames to the handler one at a time. A plain HTTP ``GET`` on
    ``health_path`` answers ``200``.

    Example::

        transport = WebSocketServerTransport(WebSocketServerConfig(port=4000))
        kit = RelayKit(transport=transport, store=my_store)
        await transport.serve_forever()
    """

    def __init__(self, config: WebSocketServerConfig | None = None) -> None:
        super().__init__()
        self._config = config or WebSocketServerConfig()
        self._connections: dict[str, ServerConnection] = {}
        self._server: Server | None = None

    @property
    def name(self) -> str:
        return f"websocket:{self._config.host}:{self._config.port}"

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    @property
    def port(self) -> int:
        """The bound port (useful when configured with port 0)."""
        if self._server is None:
            raise RuntimeError("WebSocket server is not running")
        return int(self._server.sockets[0].getsockname()[1])

    async def start(self) -> None:
        """Bind the listening socket and start accepting connections."""
        if self._server is not None:
            return
        self._server = await serve(
            self._handle_connection,
            self._config.host,
            self._config.port,
            origins=self._config.allowed_origins,
            process_request=self._process_request,
            max_size=self._config.max_size,
        )
        logger.info("WebSocket transport listening on %s:%d", self._config.host, self.port)

    async def serve_forever(self) -> None:
        await self.start()
        assert self._server is not None
        await self._server.serve_forever()

    async def close(self) -> None:
        """Stop accepting connections and close the open ones."""
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("WebSocket transport stopped")

    async def __aenter__(self) -> WebSocketServerTransport:
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def send_to_connection(self, connection_id: str, event: str, payload: Any) -> None:
        connection = self._connections.get(connection_id)
        if connection is None:
            logger.debug("Dropping %s for closed connection %s", event, connection_id)
            return
        try:
            await connection.send(_encode(event, payload))
        except ConnectionClosed:
            logger.debug("Connection %s closed during send", connection_id)

    async def broadcast_except(self, connection_id: str, event: str, payload: Any) -> None:
        targets = [c for cid, c in self._connections.items() if cid != connection_id]
        broadcast(targets, _encode(event, payload))

    def _process_request(self, connection: ServerConnection, request: Request) -> Response | None:
        if request.path == self._config.health_path:
            return connection.respond(HTTPStatus.OK, '{"status": "ok"}\n')
        return None

    async def _handle_connection(self, connection: ServerConnection) -> None:
        connection_id = uuid4().hex
        self._connections[connection_id] = connection
        try:
            await self.handler.on_connection_opened(connection_id)
            async for raw in connection:
                await self._dispatch(connection_id, connection, raw)
        except ConnectionClosed:
            logger.debug("Connection %s closed abruptly", connection_id)
        finally:
            self._connections.pop(connection_id, None)
            await self.handler.on_connection_closed(connection_id)

    async def _dispatch(
        self, connection_id: str, connection: ServerConnection, raw: str | bytes
    ) -> None:
        try:
            frame = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Invalid frame from connection %s", connection_id)
            return
        if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
            logger.warning("Frame without an event name from connection %s", connection_id)
            return

        ack: AckFn | None = None
        ack_id = frame.get("ack")
        if ack_id is not None:

            async def send_ack(payload: dict[str, Any]) -> None:
                try:
                    await connection.send(
                        json.dumps({"event": "ack", "ack": ack_id, "data": payload})
                    )
                except ConnectionClosed:
                    logger.debug("Connection %s closed before ack", connection_id)

            ack = send_ack

        await self.handler.handle_event(connection_id, frame["event"], frame.get("data"), ack)


def _encode(event: str, payload: Any) -> str:
    return json.dumps({"event": str(event), "data": payload}, default=str)
