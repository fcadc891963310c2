"""Direct messages with acknowledgments and typing indicators.

Shows:
- ``send-message`` fan-out to every device of the receiver and the sender
- The acknowledgment returned for accepted and rejected messages
- ``typing`` relayed to the receiver's devices only

Run with:
    uv run python examples/direct_messages.py
"""

from __future__ import annotations

import asyncio

from relaykit import InMemoryChatStore, InMemoryTransport, RelayKit, UserProfile


async def main() -> None:
    store = InMemoryChatStore()
    await store.add_user(UserProfile(id="alice", first_name="Alice", last_name="Smith"))
    await store.add_user(UserProfile(id="bob", first_name="Bob", last_name="Jones"))

    transport = InMemoryTransport()
    kit = RelayKit(transport=transport, store=store)

    for conn, user in [("alice-web", "alice"), ("bob-web", "bob"), ("bob-phone", "bob")]:
        await transport.open(conn)
        await transport.emit(conn, "join", user)
    transport.reset()

    await transport.emit(
        "alice-web", "typing", {"senderId": "alice", "receiverId": "bob", "isTyping": True}
    )

    acks = await transport.emit(
        "alice-web",
        "send-message",
        {"senderId": "alice", "receiverId": "bob", "content": "Hi Bob!", "conversationId": "dm-1"},
        expect_ack=True,
    )
    print(f"Ack: {acks[0]}")

    acks = await transport.emit(
        "alice-web",
        "send-message",
        {"senderId": "alice", "receiverId": "bob", "content": ""},
        expect_ack=True,
    )
    print(f"Ack for empty message: {acks[0]}")

    print("\nFrames sent:")
    for frame in transport.sent:
        print(f"  {frame.connection_id:<10} {frame.event:<16} {frame.payload}")

    await kit.close()


if __name__ == "__main__":
    asyncio.run(main())
