"""RelayKit - central orchestrator for presence and direct-message fan-out."""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from typing import Any

from relaykit.core.config import RelayConfig
from relaykit.core.errors import (
    ConnectionOwnershipError,
    InvalidPayloadError,
    RelayKitError,
    SenderNotFoundError,
    StorageUnavailableError,
)
from relaykit.core.locks import ConnectionLockManager, InMemoryConnectionLockManager
from relaykit.core.presence import PresenceTracker
from relaykit.core.receipts import ReadReceiptAggregator
from relaykit.core.router import EventRouter
from relaykit.models.delivery import SendAck
from relaykit.models.enums import InboundEvent
from relaykit.models.framework_event import FrameworkEvent
from relaykit.registry.base import ConnectionRegistry
from relaykit.registry.memory import InMemoryConnectionRegistry
from relaykit.store.base import ChatStore
from relaykit.store.memory import InMemoryChatStore
from relaykit.telemetry.base import TelemetryProvider
from relaykit.telemetry.config import TelemetryConfig
from relaykit.telemetry.noop import NoopTelemetryProvider
from relaykit.transport.base import AckFn, Transport
from relaykit.transport.memory import InMemoryTransport

__all__ = [
    "ConnectionOwnershipError",
    "FrameworkEventHandler",
    "InvalidPayloadError",
    "RelayKit",
    "RelayKitError",
    "SenderNotFoundError",
    "StorageUnavailableError",
]

logger = logging.getLogger("relaykit.framework")

FrameworkEventHandler = Callable[[FrameworkEvent], Coroutine[Any, Any, None]]
_EventHandler = Callable[[str, Any, AckFn | None], Coroutine[Any, Any, None]]


class RelayKit:
    """Central orchestrator tying the registry, storage, and transport together.

    ``RelayKit`` binds itself to the transport and implements the inbound
    primitives the transport drives: ``on_connection_opened``,
    ``on_connection_closed`` and ``handle_event``. Events from one
    connection are processed one at a time, in arrival order. No failure
    inside an event handler escapes ``handle_event``.

    Example::

        store = InMemoryChatStore()
        transport = InMemoryTransport()
        kit = RelayKit(transport=transport, store=store)

        conn = await transport.open()
        await transport.emit(conn, "join", "alice")
    """

    def __init__(
        self,
        transport: Transport | None = None,
        store: ChatStore | None = None,
        registry: ConnectionRegistry | None = None,
        lock_manager: ConnectionLockManager | None = None,
        config: RelayConfig | None = None,
        telemetry: TelemetryConfig | TelemetryProvider | None = None,
    ) -> None:
        """Initialise the orchestrator.

        Args:
            transport: Socket transport. Defaults to ``InMemoryTransport``.
            store: Storage collaborator. Defaults to ``InMemoryChatStore``.
            registry: Connection registry. Defaults to
                ``InMemoryConnectionRegistry``.
            lock_manager: Per-connection locking used to serialise inbound
                events. Defaults to ``InMemoryConnectionLockManager``.
            config: Engine behaviour switches. Defaults to ``RelayConfig()``.
            telemetry: Telemetry provider or config. Defaults to
                ``NoopTelemetryProvider``.
        """
        self._transport = transport or InMemoryTransport()
        self._store = store or InMemoryChatStore()
        self._registry = registry or InMemoryConnectionRegistry()
        self._lock_manager = lock_manager or InMemoryConnectionLockManager()
        self._config = config or RelayConfig()
        if isinstance(telemetry, TelemetryProvider):
            self._telemetry: TelemetryProvider = telemetry
        elif isinstance(telemetry, TelemetryConfig):
            self._telemetry = telemetry.provider or NoopTelemetryProvider()
        else:
            self._telemetry = NoopTelemetryProvider()
        self._event_handlers: list[tuple[str, FrameworkEventHandler]] = []

        self._presence = PresenceTracker(
            self._registry,
            self._store,
            self._transport,
            config=self._config,
            telemetry=self._telemetry,
            emit=self._emit_framework_event,
        )
        self._router = EventRouter(
            self._registry,
            self._store,
            self._transport,
            config=self._config,
            telemetry=self._telemetry,
            emit=self._emit_framework_event,
        )
        self._receipts = ReadReceiptAggregator(
            self._registry,
            self._store,
            self._transport,
            telemetry=self._telemetry,
            emit=self._emit_framework_event,
        )
        self._handlers: dict[str, _EventHandler] = {
            InboundEvent.JOIN: self._on_join,
            InboundEvent.SEND_MESSAGE: self._on_send_message,
            InboundEvent.TYPING: self._on_typing,
            InboundEvent.MARK_READ: self._on_mark_read,
        }
        self._transport.bind(self)

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def store(self) -> ChatStore:
        """The backing chat store."""
        return self._store

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def presence(self) -> PresenceTracker:
        return self._presence

    @property
    def router(self) -> EventRouter:
        return self._router

    @property
    def receipts(self) -> ReadReceiptAggregator:
        return self._receipts

    @property
    def config(self) -> RelayConfig:
        return self._config

    @property
    def telemetry(self) -> TelemetryProvider:
        """The telemetry provider for span and metric collection."""
        return self._telemetry

    def is_online(self, user_id: str) -> bool:
        return self._presence.is_online(user_id)

    def on(self, event_type: str) -> Callable[..., Any]:
        """Decorator to register a framework event handler filtered by type.

        Emitted types: ``presence_changed``, ``message_delivered``,
        ``send_failed``, ``messages_read``, ``handler_error``.
        """

        def decorator(fn: FrameworkEventHandler) -> FrameworkEventHandler:
            self._event_handlers.append((event_type, fn))
            return fn

        return decorator

    # -- Transport primitives --

    async def on_connection_opened(self, connection_id: str) -> None:
        logger.info("Connection opened: %s", connection_id, extra={"connection_id": connection_id})

    async def on_connection_closed(self, connection_id: str) -> None:
        """Deregister *connection_id* once its queued events have finished."""
        logger.info("Connection closed: %s", connection_id, extra={"connection_id": connection_id})
        try:
            async with self._lock_manager.locked(connection_id):
                await self._presence.disconnect(connection_id)
        except Exception:
            logger.exception(
                "Disconnect handling failed for %s",
                connection_id,
                extra={"connection_id": connection_id},
            )
            await self._emit_framework_event(
                "handler_error", connection_id=connection_id, data={"event": "disconnect"}
            )

    async def handle_event(
        self,
        connection_id: str,
        event: str,
        payload: Any,
        ack: AckFn | None = None,
    ) -> None:
        """Process one named inbound event from *connection_id*."""
        handler = self._handlers.get(event)
        if handler is None:
            logger.debug("Ignoring unknown event %r from %s", event, connection_id)
            if ack is not None:
                await self._ack(ack, SendAck.failure(f"Unknown event: {event}"), connection_id)
            return

        async with self._lock_manager.locked(connection_id):
            try:
                await handler(connection_id, payload, ack)
            except Exception:
                logger.exception(
                    "Handler for %s failed",
                    event,
                    extra={"connection_id": connection_id, "event": event},
                )
                await self._emit_framework_event(
                    "handler_error", connection_id=connection_id, data={"event": event}
                )

    async def close(self) -> None:
        """Close the transport and flush telemetry."""
        await self._transport.close()
        self._telemetry.close()

    # -- Event handlers --

    async def _on_join(self, connection_id: str, payload: Any, ack: AckFn | None) -> None:
        if not isinstance(payload, str) or not payload:
            logger.debug("Ignoring join without a user id on %s", connection_id)
            return
        await self._presence.connect(payload, connection_id)

    async def _on_send_message(self, connection_id: str, payload: Any, ack: AckFn | None) -> None:
        try:
            result = await self._router.route_send(payload)
        except Exception:
            logger.exception(
                "send-message failed unexpectedly", extra={"connection_id": connection_id}
            )
            result = SendAck.failure("Internal error")
        if ack is not None:
            await self._ack(ack, result, connection_id)

    async def _on_typing(self, connection_id: str, payload: Any, ack: AckFn | None) -> None:
        await self._router.route_typing(payload)

    async def _on_mark_read(self, connection_id: str, payload: Any, ack: AckFn | None) -> None:
        await self._receipts.route_mark_read(payload)

    # -- Internal helpers --

    async def _ack(self, ack: AckFn, result: SendAck, connection_id: str) -> None:
        try:
            outcome = ack(result.to_payload())
            if hasattr(outcome, "__await__"):
                await outcome
        except Exception:
            logger.exception(
                "Acknowledgment callback failed", extra={"connection_id": connection_id}
            )

    async def _emit_framework_event(
        self,
        event_type: str,
        *,
        user_id: str | None = None,
        connection_id: str | None = None,
        conversation_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Emit a framework event to handlers registered for *event_type*."""
        fw_event = FrameworkEvent(
            type=event_type,
            user_id=user_id,
            connection_id=connection_id,
            conversation_id=conversation_id,
            data=data or {},
        )
        for filter_type, handler in self._event_handlers:
            if filter_type == fw_event.type:
                try:
                    await handler(fw_event)
                except Exception:
                    logger.exception(
                        "Framework event handler failed",
                        extra={"event_type": fw_event.type, "user_id": fw_event.user_id},
                    )
