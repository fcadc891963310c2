"""Tests for the RelayKit orchestrator."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

import pytest

from relaykit.core.framework import RelayKit
from relaykit.core.locks import InMemoryConnectionLockManager
from relaykit.models.framework_event import FrameworkEvent
from relaykit.models.user import UserProfile
from relaykit.registry.memory import InMemoryConnectionRegistry
from relaykit.store.memory import InMemoryChatStore
from relaykit.telemetry.config import TelemetryConfig
from relaykit.telemetry.mock import MockTelemetryProvider
from relaykit.telemetry.noop import NoopTelemetryProvider
from relaykit.transport.memory import InMemoryTransport

JoinFn = Callable[..., Coroutine[Any, Any, str]]


def _send(sender: str, receiver: str, message_id: str) -> dict[str, Any]:
    return {
        "senderId": sender,
        "receiverId": receiver,
        "content": f"message {message_id}",
        "messageId": message_id,
    }


class _GatedStore(InMemoryChatStore):
    """Holds profile lookups for gated users until released."""

    def __init__(self) -> None:
        super().__init__()
        self.gates: dict[str, asyncio.Event] = {}
        self.delays: list[float] = []

    async def get_user_status_fields(self, user_id: str) -> UserProfile | None:
        if self.delays:
            await asyncio.sleep(self.delays.pop(0))
        gate = self.gates.get(user_id)
        if gate is not None:
            await gate.wait()
        return await super().get_user_status_fields(user_id)


@pytest.fixture
async def gated_store() -> _GatedStore:
    store = _GatedStore()
    for user_id in ("alice", "bob", "carol"):
        await store.add_user(UserProfile(id=user_id, first_name=user_id.title()))
    return store


class TestDefaults:
    def test_default_collaborators(self) -> None:
        kit = RelayKit()
        assert isinstance(kit.transport, InMemoryTransport)
        assert isinstance(kit.store, InMemoryChatStore)
        assert isinstance(kit.registry, InMemoryConnectionRegistry)
        assert isinstance(kit.telemetry, NoopTelemetryProvider)
        assert kit.config.echo_to_sender is True

    def test_telemetry_config(self) -> None:
        provider = MockTelemetryProvider()
        kit = RelayKit(telemetry=TelemetryConfig(provider=provider))
        assert kit.telemetry is provider

    def test_empty_telemetry_config_falls_back_to_noop(self) -> None:
        kit = RelayKit(telemetry=TelemetryConfig())
        assert isinstance(kit.telemetry, NoopTelemetryProvider)

    def test_binds_transport(self) -> None:
        transport = InMemoryTransport()
        kit = RelayKit(transport=transport)
        assert transport.handler is kit

    async def test_close(self) -> None:
        class _ClosingTransport(InMemoryTransport):
            closed = False

            async def close(self) -> None:
                self.closed = True

        transport = _ClosingTransport()
        kit = RelayKit(transport=transport)
        await kit.close()
        assert transport.closed


class TestUnknownEvents:
    async def test_unknown_event_with_ack(self, transport: InMemoryTransport, join: JoinFn) -> None:
        conn = await join("alice")
        acks = await transport.emit(conn, "delete-everything", {}, expect_ack=True)
        assert acks == [{"ok": False, "error": "Unknown event: delete-everything"}]

    async def test_unknown_event_without_ack(
        self, transport: InMemoryTransport, join: JoinFn
    ) -> None:
        conn = await join("alice")
        transport.reset()
        await transport.emit(conn, "delete-everything", {})
        assert transport.sent == []


class TestAcknowledgment:
    async def test_async_ack_is_awaited(self, kit: RelayKit, join: JoinFn) -> None:
        conn = await join("alice")
        received: list[dict[str, Any]] = []

        async def ack(payload: dict[str, Any]) -> None:
            await asyncio.sleep(0)
            received.append(payload)

        await kit.handle_event(conn, "send-message", _send("alice", "bob", "m1"), ack)
        assert received == [{"ok": True}]

    async def test_failing_ack_is_logged(
        self, kit: RelayKit, join: JoinFn, caplog: pytest.LogCaptureFixture
    ) -> None:
        conn = await join("alice")

        def ack(payload: dict[str, Any]) -> None:
            raise BrokenPipeError("client went away")

        with caplog.at_level(logging.ERROR, logger="relaykit.framework"):
            await kit.handle_event(conn, "send-message", _send("alice", "bob", "m1"), ack)

        assert "Acknowledgment callback failed" in caplog.text

    async def test_unexpected_send_error_acks_once(
        self,
        kit: RelayKit,
        transport: InMemoryTransport,
        join: JoinFn,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def boom(payload: Any) -> Any:
            raise RuntimeError("bug")

        monkeypatch.setattr(kit.router, "route_send", boom)
        conn = await join("alice")

        acks = await transport.emit(
            conn, "send-message", _send("alice", "bob", "m1"), expect_ack=True
        )
        assert acks == [{"ok": False, "error": "Internal error"}]

    async def test_send_without_ack(self, transport: InMemoryTransport, join: JoinFn) -> None:
        conn = await join("alice")
        await transport.emit(conn, "send-message", _send("alice", "bob", "m1"))
        assert len(transport.frames(conn, "receive-message")) == 1


class TestFailureIsolation:
    async def test_handler_error_does_not_escape(
        self,
        kit: RelayKit,
        transport: InMemoryTransport,
        join: JoinFn,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        errors: list[FrameworkEvent] = []

        @kit.on("handler_error")
        async def record(event: FrameworkEvent) -> None:
            errors.append(event)

        async def boom(payload: Any) -> int:
            raise RuntimeError("typing exploded")

        monkeypatch.setattr(kit.router, "route_typing", boom)
        conn = await join("alice")

        with caplog.at_level(logging.ERROR, logger="relaykit.framework"):
            await transport.emit(conn, "typing", {"senderId": "alice", "receiverId": "bob"})

        assert "Handler for typing failed" in caplog.text
        assert [(e.connection_id, e.data) for e in errors] == [(conn, {"event": "typing"})]

        # The connection keeps working afterwards.
        acks = await transport.emit(
            conn, "send-message", _send("alice", "bob", "m1"), expect_ack=True
        )
        assert acks == [{"ok": True}]

    async def test_disconnect_error_does_not_escape(
        self,
        kit: RelayKit,
        transport: InMemoryTransport,
        join: JoinFn,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        async def boom(connection_id: str) -> None:
            raise RuntimeError("registry exploded")

        conn = await join("alice")
        monkeypatch.setattr(kit.presence, "disconnect", boom)

        with caplog.at_level(logging.ERROR, logger="relaykit.framework"):
            await transport.close_connection(conn)

        assert "Disconnect handling failed" in caplog.text

    async def test_framework_handler_error_is_logged(
        self, kit: RelayKit, join: JoinFn, caplog: pytest.LogCaptureFixture
    ) -> None:
        calls: list[str] = []

        @kit.on("presence_changed")
        async def broken(event: FrameworkEvent) -> None:
            raise ValueError("observer bug")

        @kit.on("presence_changed")
        async def working(event: FrameworkEvent) -> None:
            calls.append(event.data["status"])

        with caplog.at_level(logging.ERROR, logger="relaykit.framework"):
            await join("alice")

        assert kit.is_online("alice")
        assert calls == ["online"]
        assert "Framework event handler failed" in caplog.text


class TestOrdering:
    async def test_events_of_one_connection_run_in_order(
        self, gated_store: _GatedStore
    ) -> None:
        transport = InMemoryTransport()
        kit = RelayKit(transport=transport, store=gated_store)
        sender = await transport.open("a1")
        receiver = await transport.open("b1")
        await transport.emit(receiver, "join", "bob")

        # The first lookup is slower than the second.
        gated_store.delays = [0.05, 0.0]
        await asyncio.gather(
            kit.handle_event(sender, "send-message", _send("alice", "bob", "first")),
            kit.handle_event(sender, "send-message", _send("alice", "bob", "second")),
        )

        received = [f.payload["_id"] for f in transport.frames(receiver, "receive-message")]
        assert received == ["first", "second"]

    async def test_connections_do_not_block_each_other(
        self, gated_store: _GatedStore, advance: Callable[..., Coroutine[Any, Any, None]]
    ) -> None:
        transport = InMemoryTransport()
        kit = RelayKit(transport=transport, store=gated_store)
        slow = await transport.open("a1")
        fast = await transport.open("c1")
        receiver = await transport.open("b1")
        await transport.emit(receiver, "join", "bob")

        gated_store.gates["alice"] = asyncio.Event()
        pending = asyncio.create_task(
            kit.handle_event(slow, "send-message", _send("alice", "bob", "slow"))
        )
        await advance()

        await kit.handle_event(fast, "send-message", _send("carol", "bob", "fast"))
        assert [f.payload["_id"] for f in transport.frames(receiver)] == ["fast"]

        gated_store.gates["alice"].set()
        await pending
        assert [f.payload["_id"] for f in transport.frames(receiver)] == ["fast", "slow"]

    async def test_close_waits_for_queued_join(
        self, gated_store: _GatedStore, advance: Callable[..., Coroutine[Any, Any, None]]
    ) -> None:
        transport = InMemoryTransport()
        kit = RelayKit(transport=transport, store=gated_store)
        observer = await transport.open("observer")
        conn = await transport.open("a1")

        gated_store.gates["alice"] = asyncio.Event()
        pending = [
            asyncio.create_task(
                kit.handle_event(conn, "send-message", _send("alice", "bob", "m1"))
            )
        ]
        await advance()
        pending.append(asyncio.create_task(kit.handle_event(conn, "join", "alice")))
        await advance()
        pending.append(asyncio.create_task(transport.close_connection(conn)))
        await advance()

        gated_store.gates["alice"].set()
        await asyncio.gather(*pending)

        assert not kit.is_online("alice")
        assert kit.registry.owner_of(conn) is None
        assert [f.payload for f in transport.frames(observer, "user-status-change")] == [
            {"userId": "alice", "status": "online"},
            {"userId": "alice", "status": "offline"},
        ]

    async def test_locks_released_after_events(self, store: InMemoryChatStore) -> None:
        locks = InMemoryConnectionLockManager()
        transport = InMemoryTransport()
        RelayKit(transport=transport, store=store, lock_manager=locks)
        conn = await transport.open()
        await transport.emit(conn, "join", "alice")
        await transport.emit(conn, "send-message", _send("alice", "bob", "m1"))
        assert locks.size == 0
