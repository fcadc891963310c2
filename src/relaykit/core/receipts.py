"""Read receipts: mark a conversation read and tell the other participants."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from relaykit.core._helpers import EmitFn, guarded, noop_emit
from relaykit.core.errors import StorageUnavailableError
from relaykit.core.fanout import Fanout
from relaykit.models.delivery import MessagesRead
from relaykit.models.enums import OutboundEvent
from relaykit.models.message import MarkReadRequest
from relaykit.registry.base import ConnectionRegistry
from relaykit.store.base import ChatStore
from relaykit.telemetry.base import Attr, SpanKind, TelemetryProvider
from relaykit.telemetry.noop import NoopTelemetryProvider
from relaykit.transport.base import Transport

logger = logging.getLogger("relaykit.receipts")


class ReadReceiptAggregator:
    """Applies ``mark-read`` events.

    Marks the reader's unread messages read, resets their unread counter
    on the conversation, then notifies every other participant. There is
    no acknowledgment channel: a missing conversation is a silent no-op
    and a storage failure is logged and abandons the remaining steps.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        store: ChatStore,
        transport: Transport,
        *,
        telemetry: TelemetryProvider | None = None,
        emit: EmitFn | None = None,
    ) -> None:
        self._store = store
        self._fanout = Fanout(registry, transport)
        self._telemetry = telemetry or NoopTelemetryProvider()
        self._emit = emit or noop_emit

    async def route_mark_read(self, payload: Any) -> int | None:
        """Handle a raw ``mark-read`` payload. See :meth:`mark_read`."""
        try:
            request = MarkReadRequest.model_validate(payload)
        except ValidationError:
            logger.debug("Dropping malformed mark-read event: %r", payload)
            return None
        return await self.mark_read(request.sender_id, request.conversation_id)

    async def mark_read(self, reader_id: str, conversation_id: str) -> int | None:
        """Mark *conversation_id* read on behalf of *reader_id*.

        Returns:
            The number of messages flipped to read, or ``None`` when
            nothing was applied (unknown conversation, non-participant
            reader, or storage failure).
        """
        log_extra = {"user_id": reader_id, "conversation_id": conversation_id}

        with self._telemetry.span(
            SpanKind.READ_RECEIPT,
            "receipts.mark_read",
            attributes={Attr.CONVERSATION_ID: conversation_id},
            user_id=reader_id,
        ) as span_id:
            try:
                summary = await guarded(
                    "get_conversation", self._store.get_conversation(conversation_id)
                )
                if summary is None:
                    logger.debug("mark-read for unknown conversation %s", conversation_id)
                    return None
                if not summary.has_participant(reader_id):
                    logger.warning(
                        "User %s is not a participant of %s; ignoring mark-read",
                        reader_id,
                        conversation_id,
                        extra=log_extra,
                    )
                    return None

                updated = await guarded(
                    "mark_messages_read",
                    self._store.mark_messages_read(conversation_id, reader_id),
                )
                summary.unread_count = {**summary.unread_count, reader_id: 0}
                await guarded("save_conversation", self._store.save_conversation(summary))
            except StorageUnavailableError:
                logger.exception("mark-read aborted", extra=log_extra)
                return None

            notice = MessagesRead(conversation_id=conversation_id, reader_id=reader_id)
            result = await self._fanout.to_users(
                summary.others(reader_id), OutboundEvent.MESSAGES_READ, notice.to_payload()
            )
            self._telemetry.set_attribute(span_id, Attr.MESSAGES_UPDATED, updated)
            self._telemetry.set_attribute(span_id, Attr.DELIVERY_COUNT, result.delivered)

        await self._emit(
            "messages_read",
            user_id=reader_id,
            conversation_id=conversation_id,
            data={"updated": updated, "notified": result.delivered},
        )
        return updated
