"""Transport collaborator interface and implementations."""

from relaykit.transport.base import AckFn, Transport, TransportHandler
from relaykit.transport.config import WebSocketServerConfig
from relaykit.transport.memory import InMemoryTransport, SentFrame
from relaykit.transport.websocket import WebSocketServerTransport

__all__ = [
    "AckFn",
    "InMemoryTransport",
    "SentFrame",
    "Transport",
    "TransportHandler",
    "WebSocketServerConfig",
    "WebSocketServerTransport",
]
