"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any

import pytest

from relaykit.core.framework import RelayKit
from relaykit.models.conversation import ConversationSummary, StoredMessage
from relaykit.models.user import UserProfile
from relaykit.registry.memory import InMemoryConnectionRegistry
from relaykit.store.memory import InMemoryChatStore
from relaykit.telemetry.mock import MockTelemetryProvider
from relaykit.transport.memory import InMemoryTransport


@pytest.fixture
def advance() -> Callable[[int], Coroutine[Any, Any, None]]:
    """Yield control to let pending tasks run without real delay.

    ::

        await advance()       # 5 yields (default)
        await advance(10)     # 10 yields for heavier workloads
    """

    async def _advance(n: int = 5) -> None:
        for _ in range(n):
            await asyncio.sleep(0)

    return _advance


@pytest.fixture
async def store() -> InMemoryChatStore:
    """A store with three users and one alice/bob conversation.

    Conversation ``c1`` holds two unread messages from bob to alice and
    one unread message from alice to bob.
    """
    store = InMemoryChatStore()
    await store.add_user(UserProfile(id="alice", first_name="Alice", last_name="Liddell"))
    await store.add_user(
        UserProfile(
            id="bob",
            first_name="Bob",
            last_name="Builder",
            profile_picture="https://cdn.example.com/bob.png",
        )
    )
    await store.add_user(UserProfile(id="carol", first_name="Carol", last_name="Danvers"))
    await store.add_conversation(
        ConversationSummary(
            id="c1",
            participants=["alice", "bob"],
            unread_count={"alice": 2, "bob": 1},
        )
    )
    await store.add_message(
        StoredMessage(conversation_id="c1", sender_id="bob", receiver_id="alice", content="hi")
    )
    await store.add_message(
        StoredMessage(conversation_id="c1", sender_id="bob", receiver_id="alice", content="there")
    )
    await store.add_message(
        StoredMessage(conversation_id="c1", sender_id="alice", receiver_id="bob", content="yo")
    )
    return store


@pytest.fixture
def registry() -> InMemoryConnectionRegistry:
    return InMemoryConnectionRegistry()


@pytest.fixture
def transport() -> InMemoryTransport:
    return InMemoryTransport()


@pytest.fixture
def telemetry() -> MockTelemetryProvider:
    return MockTelemetryProvider()


@pytest.fixture
def kit(
    transport: InMemoryTransport,
    store: InMemoryChatStore,
    registry: InMemoryConnectionRegistry,
    telemetry: MockTelemetryProvider,
) -> RelayKit:
    return RelayKit(transport=transport, store=store, registry=registry, telemetry=telemetry)


@pytest.fixture
def join(
    kit: RelayKit, transport: InMemoryTransport
) -> Callable[..., Coroutine[Any, Any, str]]:
    """Open a connection and announce *user_id* on it. Returns the connection ID."""

    async def _join(user_id: str, connection_id: str | None = None) -> str:
        conn = await transport.open(connection_id)
        await transport.emit(conn, "join", user_id)
        return conn

    return _join
