"""In-memory implementation of ChatStore."""

from __future__ import annotations

from datetime import UTC, datetime

from relaykit.models.conversation import ConversationSummary, StoredMessage
from relaykit.models.enums import PresenceStatus
from relaykit.models.user import UserProfile
from relaykit.store.base import ChatStore


class InMemoryChatStore(ChatStore):
    """Dict-based in-memory store for development and testing."""

    def __init__(self) -> None:
        self._users: dict[str, UserProfile] = {}
        self._conversations: dict[str, ConversationSummary] = {}
        self._messages: dict[str, StoredMessage] = {}
        self._conversation_messages: dict[str, list[str]] = {}

    # Seeding helpers

    async def add_user(self, profile: UserProfile) -> UserProfile:
        self._users[profile.id] = profile
        return profile

    async def add_conversation(self, summary: ConversationSummary) -> ConversationSummary:
        self._conversations[summary.id] = summary
        self._conversation_messages.setdefault(summary.id, [])
        return summary

    async def add_message(self, message: StoredMessage) -> StoredMessage:
        self._messages[message.id] = message
        self._conversation_messages.setdefault(message.conversation_id, []).append(message.id)
        return message

    async def get_user(self, user_id: str) -> UserProfile | None:
        user = self._users.get(user_id)
        return user.model_copy() if user is not None else None

    async def list_messages(self, conversation_id: str) -> list[StoredMessage]:
        ids = self._conversation_messages.get(conversation_id, [])
        return [self._messages[mid].model_copy() for mid in ids if mid in self._messages]

    # User operations

    async def get_user_status_fields(self, user_id: str) -> UserProfile | None:
        return await self.get_user(user_id)

    async def set_user_status(self, user_id: str, status: PresenceStatus) -> None:
        user = self._users.get(user_id)
        if user is None:
            return
        self._users[user_id] = user.model_copy(update={"status": status})

    # Message operations

    async def mark_messages_read(self, conversation_id: str, receiver_id: str) -> int:
        updated = 0
        for mid in self._conversation_messages.get(conversation_id, []):
            message = self._messages.get(mid)
            if message is None or message.read or message.receiver_id != receiver_id:
                continue
            self._messages[mid] = message.model_copy(update={"read": True})
            updated += 1
        return updated

    # Conversation operations

    async def get_conversation(self, conversation_id: str) -> ConversationSummary | None:
        summary = self._conversations.get(conversation_id)
        return summary.model_copy(deep=True) if summary is not None else None

    async def save_conversation(self, summary: ConversationSummary) -> ConversationSummary:
        saved = summary.model_copy(update={"updated_at": datetime.now(UTC)}, deep=True)
        self._conversations[summary.id] = saved
        self._conversation_messages.setdefault(summary.id, [])
        return saved
