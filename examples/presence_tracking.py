"""Presence tracking: online/offline transitions across several devices.

Demonstrates how RelayKit derives presence from live connections. Shows:
- The first connection of a user announces "online" to everyone else
- Extra devices and closing one of several devices stay silent
- Closing the last device announces "offline"
- Observing transitions with the ``presence_changed`` framework event

Run with:
    uv run python examples/presence_tracking.py
"""

from __future__ import annotations

import asyncio

from relaykit import (
    FrameworkEvent,
    InMemoryChatStore,
    InMemoryTransport,
    RelayKit,
    UserProfile,
)


async def main() -> None:
    store = InMemoryChatStore()
    for user_id, first_name in [("alice", "Alice"), ("bob", "Bob")]:
        await store.add_user(UserProfile(id=user_id, first_name=first_name))

    transport = InMemoryTransport()
    kit = RelayKit(transport=transport, store=store)

    @kit.on("presence_changed")
    async def on_presence(event: FrameworkEvent) -> None:
        print(f"  [{event.user_id}] -> {event.data['status']}")

    bob = await transport.open("bob-phone")
    await transport.emit(bob, "join", "bob")

    print("Alice opens her laptop:")
    laptop = await transport.open("alice-laptop")
    await transport.emit(laptop, "join", "alice")

    print("\nAlice opens her phone (no broadcast):")
    phone = await transport.open("alice-phone")
    await transport.emit(phone, "join", "alice")

    print("\nAlice closes her laptop (still online):")
    await transport.close_connection(laptop)
    print(f"  alice online: {kit.is_online('alice')}")

    print("\nAlice closes her phone:")
    await transport.close_connection(phone)

    print("\nWhat Bob's connection saw:")
    for frame in transport.frames(bob, "user-status-change"):
        print(f"  {frame.payload}")

    stored = await store.get_user("alice")
    assert stored is not None
    print(f"\nPersisted status for alice: {stored.status}")

    await kit.close()


if __name__ == "__main__":
    asyncio.run(main())
