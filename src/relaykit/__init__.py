"""relaykit - Pure async Python library for real-time presence and direct-message fan-out."""

from relaykit._version import __version__
from relaykit.core.config import RelayConfig
from relaykit.core.errors import (
    ConnectionOwnershipError,
    InvalidPayloadError,
    RelayKitError,
    SenderNotFoundError,
    StorageUnavailableError,
)
from relaykit.core.fanout import Fanout, FanoutResult
from relaykit.core.framework import FrameworkEventHandler, RelayKit
from relaykit.core.locks import ConnectionLockManager, InMemoryConnectionLockManager
from relaykit.core.presence import PresenceTracker
from relaykit.core.receipts import ReadReceiptAggregator
from relaykit.core.router import EventRouter
from relaykit.models.conversation import ConversationSummary, StoredMessage
from relaykit.models.delivery import MessagesRead, SendAck, UserStatusChange, UserTyping
from relaykit.models.enums import InboundEvent, OutboundEvent, PresenceStatus
from relaykit.models.framework_event import FrameworkEvent
from relaykit.models.message import (
    MarkReadRequest,
    MessageEnvelope,
    SendMessageRequest,
    TypingRequest,
)
from relaykit.models.user import UserProfile
from relaykit.registry import ConnectionRegistry, Deregistration, InMemoryConnectionRegistry
from relaykit.store import ChatStore, InMemoryChatStore
from relaykit.telemetry import (
    Attr,
    MockTelemetryProvider,
    NoopTelemetryProvider,
    RecordedMetric,
    Span,
    SpanKind,
    TelemetryConfig,
    TelemetryProvider,
)
from relaykit.transport import (
    AckFn,
    InMemoryTransport,
    SentFrame,
    Transport,
    TransportHandler,
    WebSocketServerConfig,
    WebSocketServerTransport,
)

__all__ = [
    "AckFn",
    "Attr",
    "ChatStore",
    "ConnectionLockManager",
    "ConnectionOwnershipError",
    "ConnectionRegistry",
    "ConversationSummary",
    "Deregistration",
    "EventRouter",
    "Fanout",
    "FanoutResult",
    "FrameworkEvent",
    "FrameworkEventHandler",
    "InMemoryChatStore",
    "InMemoryConnectionLockManager",
    "InMemoryConnectionRegistry",
    "InMemoryTransport",
    "InboundEvent",
    "InvalidPayloadError",
    "MarkReadRequest",
    "MessageEnvelope",
    "MessagesRead",
    "MockTelemetryProvider",
    "NoopTelemetryProvider",
    "OutboundEvent",
    "PresenceStatus",
    "PresenceTracker",
    "ReadReceiptAggregator",
    "RecordedMetric",
    "RelayConfig",
    "RelayKit",
    "RelayKitError",
    "SendAck",
    "SendMessageRequest",
    "SenderNotFoundError",
    "SentFrame",
    "Span",
    "SpanKind",
    "StorageUnavailableError",
    "StoredMessage",
    "TelemetryConfig",
    "TelemetryProvider",
    "Transport",
    "TransportHandler",
    "TypingRequest",
    "UserProfile",
    "UserStatusChange",
    "UserTyping",
    "WebSocketServerConfig",
    "WebSocketServerTransport",
    "__version__",
]
