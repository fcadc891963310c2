"""Storage collaborator interface and the in-memory implementation."""

from relaykit.store.base import ChatStore
from relaykit.store.memory import InMemoryChatStore

__all__ = ["ChatStore", "InMemoryChatStore"]
