"""Conversation and stored-message models."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ConversationSummary(BaseModel):
    """A direct-message conversation as seen by the read-receipt aggregator."""

    model_config = ConfigDict(validate_assignment=True)

    id: str
    participants: list[str] = Field(default_factory=list)
    unread_count: dict[str, int] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("participants")
    @classmethod
    def _dedupe_participants(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def _unread_keys_are_participants(self) -> ConversationSummary:
        unknown = set(self.unread_count) - set(self.participants)
        if unknown:
            raise ValueError(f"unread_count has non-participant keys: {sorted(unknown)}")
        return self

    def has_participant(self, user_id: str) -> bool:
        return user_id in self.participants

    def others(self, user_id: str) -> list[str]:
        """Participants other than *user_id*, in conversation order."""
        return [p for p in self.participants if p != user_id]


class StoredMessage(BaseModel):
    """A persisted direct message."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    conversation_id: str
    sender_id: str
    receiver_id: str
    content: str
    read: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
