"""Inbound request models and the outbound message envelope."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from relaykit.models.user import UserProfile


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SendMessageRequest(_Request):
    """Payload of a ``send-message`` event."""

    sender_id: str = Field(alias="senderId", min_length=1)
    receiver_id: str = Field(alias="receiverId", min_length=1)
    content: str = Field(min_length=1)
    conversation_id: str | None = Field(default=None, alias="conversationId")
    message_id: str | None = Field(default=None, alias="messageId")

    @field_validator("content", mode="before")
    @classmethod
    def _stringify_numbers(cls, v: Any) -> Any:
        # Non-zero numbers count as content; 0 stays invalid.
        if isinstance(v, int | float) and not isinstance(v, bool) and v:
            return str(v)
        return v


class TypingRequest(_Request):
    """Payload of a ``typing`` event."""

    sender_id: str = Field(alias="senderId", min_length=1)
    receiver_id: str = Field(alias="receiverId", min_length=1)
    is_typing: bool = Field(default=False, alias="isTyping")


class MarkReadRequest(_Request):
    """Payload of a ``mark-read`` event."""

    sender_id: str = Field(alias="senderId", min_length=1)
    conversation_id: str = Field(alias="conversationId", min_length=1)


class MessageEnvelope(BaseModel):
    """A message in flight. Built once per send and never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str
    sender_id: str
    sender_profile: UserProfile
    receiver_id: str
    content: str
    conversation_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    read: bool = False

    def to_payload(self) -> dict[str, Any]:
        """Render the ``receive-message`` payload.

        ``senderId`` carries the populated sender snippet so clients can
        render names and avatars without a second lookup.
        """
        return {
            "_id": self.id,
            "senderId": self.sender_profile.to_payload(),
            "receiverId": self.receiver_id,
            "content": self.content,
            "conversationId": self.conversation_id,
            "createdAt": self.created_at.isoformat(),
            "read": self.read,
        }
