"""All string enums for relaykit."""

from __future__ import annotations

from enum import StrEnum, unique


@unique
class PresenceStatus(StrEnum):
    ONLINE = "online"
    OFFLINE = "offline"


@unique
class InboundEvent(StrEnum):
    """Event names a client may send."""

    JOIN = "join"
    SEND_MESSAGE = "send-message"
    TYPING = "typing"
    MARK_READ = "mark-read"


@unique
class OutboundEvent(StrEnum):
    """Event names the engine emits to connections."""

    USER_STATUS_CHANGE = "user-status-change"
    RECEIVE_MESSAGE = "receive-message"
    USER_TYPING = "user-typing"
    MESSAGES_READ = "messages-read"
