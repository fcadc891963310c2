"""Event router: validates inbound chat events and fans them out."""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from relaykit.core._helpers import EmitFn, guarded, noop_emit
from relaykit.core.config import RelayConfig
from relaykit.core.errors import InvalidPayloadError, RelayKitError, SenderNotFoundError
from relaykit.core.fanout import Fanout, FanoutResult
from relaykit.models.delivery import SendAck, UserTyping
from relaykit.models.enums import OutboundEvent
from relaykit.models.message import MessageEnvelope, SendMessageRequest, TypingRequest
from relaykit.registry.base import ConnectionRegistry
from relaykit.store.base import ChatStore
from relaykit.telemetry.base import Attr, SpanKind, TelemetryProvider
from relaykit.telemetry.noop import NoopTelemetryProvider
from relaykit.transport.base import Transport

logger = logging.getLogger("relaykit.router")

_INCOMPLETE = "Incomplete message payload"


class EventRouter:
    """Routes ``send-message`` and ``typing`` events to live connections."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        store: ChatStore,
        transport: Transport,
        *,
        config: RelayConfig | None = None,
        telemetry: TelemetryProvider | None = None,
        emit: EmitFn | None = None,
    ) -> None:
        self._store = store
        self._fanout = Fanout(registry, transport)
        self._config = config or RelayConfig()
        self._telemetry = telemetry or NoopTelemetryProvider()
        self._emit = emit or noop_emit

    def parse_send(self, payload: Any) -> SendMessageRequest:
        """Validate a ``send-message`` payload.

        Raises:
            InvalidPayloadError: If ``senderId``, ``receiverId`` or
                ``content`` is missing or empty, or the content is too long.
        """
        try:
            request = SendMessageRequest.model_validate(payload)
        except ValidationError as exc:
            raise InvalidPayloadError(_INCOMPLETE) from exc

        limit = self._config.max_content_length
        if limit is not None and len(request.content) > limit:
            raise InvalidPayloadError(f"Message content exceeds {limit} characters")
        return request

    async def route_send(self, payload: Any) -> SendAck:
        """Handle a ``send-message`` event.

        Never raises for validation or storage problems: every failure is
        reported in the returned acknowledgment.
        """
        try:
            envelope, result = await self.send(payload)
        except RelayKitError as exc:
            sender_id = payload.get("senderId") if isinstance(payload, dict) else None
            logger.warning(
                "send-message rejected: %s",
                exc,
                extra={"user_id": sender_id, "error_type": type(exc).__name__},
            )
            await self._emit(
                "send_failed",
                user_id=sender_id if isinstance(sender_id, str) else None,
                data={"error": str(exc), "error_type": type(exc).__name__},
            )
            return SendAck.failure(str(exc))

        await self._emit(
            "message_delivered",
            user_id=envelope.sender_id,
            conversation_id=envelope.conversation_id,
            data={
                "message_id": envelope.id,
                "receiver_id": envelope.receiver_id,
                "delivered": result.delivered,
                "failed": result.failed,
            },
        )
        return SendAck.success()

    async def send(self, payload: Any) -> tuple[MessageEnvelope, FanoutResult]:
        """Validate, enrich, and deliver a message.

        The envelope goes to every live connection of the receiver and,
        unless disabled, of the sender. A receiver with no live
        connections is not an error.

        Raises:
            InvalidPayloadError: On a malformed payload.
            SenderNotFoundError: If the sender has no stored profile.
            StorageUnavailableError: If the profile lookup fails.
        """
        request = self.parse_send(payload)

        with self._telemetry.span(
            SpanKind.ROUTE_SEND,
            "router.send",
            attributes={Attr.RECEIVER_ID: request.receiver_id},
            user_id=request.sender_id,
        ) as span_id:
            profile = await guarded(
                "get_user_status_fields", self._store.get_user_status_fields(request.sender_id)
            )
            if profile is None:
                raise SenderNotFoundError("Sender not found")

            envelope = MessageEnvelope(
                id=request.message_id or uuid4().hex,
                sender_id=request.sender_id,
                sender_profile=profile,
                receiver_id=request.receiver_id,
                content=request.content,
                conversation_id=request.conversation_id,
            )
            targets = [request.receiver_id]
            if self._config.echo_to_sender:
                targets.append(request.sender_id)
            result = await self._fanout.to_users(
                targets, OutboundEvent.RECEIVE_MESSAGE, envelope.to_payload()
            )
            self._telemetry.set_attribute(span_id, Attr.MESSAGE_ID, envelope.id)
            self._telemetry.set_attribute(span_id, Attr.DELIVERY_COUNT, result.delivered)
            self._telemetry.set_attribute(span_id, Attr.DELIVERY_FAILURES, result.failed)

        self._telemetry.record_metric(
            "relaykit.deliveries",
            result.delivered,
            attributes={"event": str(OutboundEvent.RECEIVE_MESSAGE)},
        )
        logger.debug(
            "Message %s from %s to %s delivered to %d connection(s)",
            envelope.id,
            envelope.sender_id,
            envelope.receiver_id,
            result.delivered,
            extra={"message_id": envelope.id, "conversation_id": envelope.conversation_id},
        )
        return envelope, result

    async def route_typing(self, payload: Any) -> int:
        """Relay a ``typing`` signal to the receiver's connections.

        Best-effort: malformed payloads are dropped.

        Returns:
            The number of connections the signal was delivered to.
        """
        try:
            request = TypingRequest.model_validate(payload)
        except ValidationError:
            logger.debug("Dropping malformed typing event: %r", payload)
            return 0

        with self._telemetry.span(
            SpanKind.ROUTE_TYPING,
            "router.typing",
            attributes={Attr.RECEIVER_ID: request.receiver_id},
            user_id=request.sender_id,
        ) as span_id:
            notice = UserTyping(user_id=request.sender_id, is_typing=request.is_typing)
            result = await self._fanout.to_users(
                [request.receiver_id], OutboundEvent.USER_TYPING, notice.to_payload()
            )
            self._telemetry.set_attribute(span_id, Attr.DELIVERY_COUNT, result.delivered)
        return result.delivered
