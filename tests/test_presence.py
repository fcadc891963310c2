"""Tests for presence transitions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from typing import Any

import pytest

from relaykit.core.config import RelayConfig
from relaykit.core.framework import RelayKit
from relaykit.core.presence import PresenceTracker
from relaykit.models.enums import PresenceStatus
from relaykit.models.framework_event import FrameworkEvent
from relaykit.models.user import UserProfile
from relaykit.registry.memory import InMemoryConnectionRegistry
from relaykit.store.memory import InMemoryChatStore
from relaykit.telemetry.base import Attr, SpanKind
from relaykit.telemetry.mock import MockTelemetryProvider
from relaykit.transport.memory import InMemoryTransport

JoinFn = Callable[..., Coroutine[Any, Any, str]]


class _FailingStatusStore(InMemoryChatStore):
    async def set_user_status(self, user_id: str, status: PresenceStatus) -> None:
        raise RuntimeError("database unreachable")


def _status_notices(transport: InMemoryTransport, connection_id: str) -> list[dict[str, Any]]:
    return [f.payload for f in transport.frames(connection_id, "user-status-change")]


class TestOnline:
    async def test_first_join_broadcasts_to_others(
        self, kit: RelayKit, transport: InMemoryTransport, store: InMemoryChatStore, join: JoinFn
    ) -> None:
        observer = await transport.open("observer")
        conn = await join("alice", "a1")

        assert kit.is_online("alice")
        assert _status_notices(transport, observer) == [{"userId": "alice", "status": "online"}]
        assert _status_notices(transport, conn) == []
        profile = await store.get_user("alice")
        assert profile is not None
        assert profile.status == PresenceStatus.ONLINE

    async def test_second_connection_is_silent(
        self, transport: InMemoryTransport, join: JoinFn
    ) -> None:
        observer = await transport.open("observer")
        await join("alice", "a1")
        await join("alice", "a2")
        assert len(_status_notices(transport, observer)) == 1

    async def test_repeated_join_on_same_connection_is_silent(
        self, transport: InMemoryTransport, join: JoinFn
    ) -> None:
        observer = await transport.open("observer")
        conn = await join("alice")
        await transport.emit(conn, "join", "alice")
        assert len(_status_notices(transport, observer)) == 1

    @pytest.mark.parametrize("payload", [None, "", 42, {"userId": "alice"}])
    async def test_join_without_user_id_is_ignored(
        self, kit: RelayKit, transport: InMemoryTransport, payload: Any
    ) -> None:
        conn = await transport.open()
        await transport.emit(conn, "join", payload)
        assert kit.registry.owner_of(conn) is None
        assert transport.sent == []

    async def test_status_of(self, kit: RelayKit, join: JoinFn) -> None:
        assert kit.presence.status_of("alice") == PresenceStatus.OFFLINE
        await join("alice")
        assert kit.presence.status_of("alice") == PresenceStatus.ONLINE


class TestOffline:
    async def test_closing_one_of_two_is_silent(
        self, kit: RelayKit, transport: InMemoryTransport, join: JoinFn
    ) -> None:
        await join("alice", "a1")
        await join("alice", "a2")
        observer = await transport.open("observer")

        await transport.close_connection("a1")

        assert kit.is_online("alice")
        assert _status_notices(transport, observer) == []

    async def test_last_close_broadcasts_once(
        self,
        kit: RelayKit,
        transport: InMemoryTransport,
        store: InMemoryChatStore,
        join: JoinFn,
    ) -> None:
        await join("alice", "a1")
        await join("alice", "a2")
        observer = await transport.open("observer")

        await transport.close_connection("a1")
        await transport.close_connection("a2")

        assert not kit.is_online("alice")
        assert _status_notices(transport, observer) == [
            {"userId": "alice", "status": "offline"}
        ]
        profile = await store.get_user("alice")
        assert profile is not None
        assert profile.status == PresenceStatus.OFFLINE

    async def test_close_without_join_is_silent(
        self, kit: RelayKit, transport: InMemoryTransport
    ) -> None:
        observer = await transport.open("observer")
        conn = await transport.open()
        await transport.close_connection(conn)
        assert _status_notices(transport, observer) == []
        assert kit.registry.online_users() == frozenset()

    async def test_rejoin_as_other_user_moves_connection(
        self, kit: RelayKit, transport: InMemoryTransport, join: JoinFn
    ) -> None:
        observer = await transport.open("observer")
        conn = await join("alice")
        await transport.emit(conn, "join", "bob")

        assert not kit.is_online("alice")
        assert kit.registry.owner_of(conn) == "bob"
        assert _status_notices(transport, observer) == [
            {"userId": "alice", "status": "online"},
            {"userId": "alice", "status": "offline"},
            {"userId": "bob", "status": "online"},
        ]


class TestBestEffort:
    async def test_storage_failure_does_not_block_broadcast(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        transport = InMemoryTransport()
        kit = RelayKit(transport=transport, store=_FailingStatusStore())
        observer = await transport.open("observer")
        conn = await transport.open()

        with caplog.at_level(logging.ERROR, logger="relaykit.presence"):
            await transport.emit(conn, "join", "alice")

        assert kit.is_online("alice")
        assert _status_notices(transport, observer) == [{"userId": "alice", "status": "online"}]
        assert "Failed to persist status online" in caplog.text

    async def test_broadcast_failure_is_logged(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        class _BrokenBroadcast(InMemoryTransport):
            async def broadcast_except(self, connection_id: str, event: str, payload: Any) -> None:
                raise ConnectionError("socket gone")

        store = InMemoryChatStore()
        await store.add_user(UserProfile(id="alice"))
        tracker = PresenceTracker(InMemoryConnectionRegistry(), store, _BrokenBroadcast())

        with caplog.at_level(logging.ERROR, logger="relaykit.presence"):
            assert await tracker.connect("alice", "a1") == PresenceStatus.ONLINE

        assert "Presence broadcast failed" in caplog.text
        profile = await store.get_user("alice")
        assert profile is not None
        assert profile.status == PresenceStatus.ONLINE

    async def test_broadcast_can_be_disabled(self, store: InMemoryChatStore) -> None:
        transport = InMemoryTransport()
        kit = RelayKit(
            transport=transport, store=store, config=RelayConfig(broadcast_presence=False)
        )
        await transport.open("observer")
        conn = await transport.open()
        await transport.emit(conn, "join", "alice")

        assert kit.is_online("alice")
        assert transport.sent == []
        profile = await store.get_user("alice")
        assert profile is not None
        assert profile.status == PresenceStatus.ONLINE


class TestTrackerDirect:
    async def test_return_values(self, store: InMemoryChatStore) -> None:
        tracker = PresenceTracker(InMemoryConnectionRegistry(), store, InMemoryTransport())
        assert await tracker.connect("alice", "a1") == PresenceStatus.ONLINE
        assert await tracker.connect("alice", "a2") is None
        assert await tracker.disconnect("a1") is None
        assert await tracker.disconnect("a2") == PresenceStatus.OFFLINE
        assert await tracker.disconnect("a2") is None


class TestObservability:
    async def test_presence_changed_events(
        self, kit: RelayKit, transport: InMemoryTransport, join: JoinFn
    ) -> None:
        events: list[FrameworkEvent] = []

        @kit.on("presence_changed")
        async def record(event: FrameworkEvent) -> None:
            events.append(event)

        conn = await join("alice")
        await transport.close_connection(conn)

        assert [(e.user_id, e.data["status"]) for e in events] == [
            ("alice", "online"),
            ("alice", "offline"),
        ]
        assert events[0].connection_id == conn

    async def test_transition_spans(
        self, telemetry: MockTelemetryProvider, join: JoinFn
    ) -> None:
        await join("alice")
        spans = telemetry.get_spans(SpanKind.PRESENCE_TRANSITION)
        assert len(spans) == 1
        assert spans[0].user_id == "alice"
        assert spans[0].attributes[Attr.PRESENCE_STATUS] == "online"
