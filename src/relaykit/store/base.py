"""Abstract base class for chat storage."""

from __future__ import annotations

from abc import ABC, abstractmethod

from relaykit.models.conversation import ConversationSummary
from relaykit.models.enums import PresenceStatus
from relaykit.models.user import UserProfile


class ChatStore(ABC):
    """Durable storage for users, conversations, and messages.

    The engine only reads profiles and conversations and issues update
    commands; it never owns the records. Implement this ABC to plug in any
    document or SQL store. Implementations must be safe to call
    concurrently. The library ships with ``InMemoryChatStore`` for
    development and testing.
    """

    # User operations

    @abstractmethod
    async def get_user_status_fields(self, user_id: str) -> UserProfile | None:
        """Get the profile snippet for a user, or ``None`` if unknown."""
        ...

    @abstractmethod
    async def set_user_status(self, user_id: str, status: PresenceStatus) -> None:
        """Persist a user's presence status."""
        ...

    # Message operations

    @abstractmethod
    async def mark_messages_read(self, conversation_id: str, receiver_id: str) -> int:
        """Mark every unread message addressed to *receiver_id* as read.

        Returns:
            The number of messages updated.
        """
        ...

    # Conversation operations

    @abstractmethod
    async def get_conversation(self, conversation_id: str) -> ConversationSummary | None:
        """Get a conversation, or ``None`` if it doesn't exist."""
        ...

    @abstractmethod
    async def save_conversation(self, summary: ConversationSummary) -> ConversationSummary:
        """Persist an updated conversation summary."""
        ...
