"""Acknowledgment and outbound notification payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from relaykit.models.enums import PresenceStatus


class SendAck(BaseModel):
    """Result returned to the caller of a ``send-message`` event."""

    ok: bool
    error: str | None = None

    @classmethod
    def success(cls) -> SendAck:
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str) -> SendAck:
        return cls(ok=False, error=error)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class _Notification(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class UserStatusChange(_Notification):
    user_id: str = Field(alias="userId")
    status: PresenceStatus


class UserTyping(_Notification):
    user_id: str = Field(alias="userId")
    is_typing: bool = Field(alias="isTyping")


class MessagesRead(_Notification):
    conversation_id: str = Field(alias="conversationId")
    reader_id: str = Field(alias="readerId")
