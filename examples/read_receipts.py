"""Read receipts: clear unread counters and notify the other side.

Demonstrates the mark-read flow. Shows:
- Unread counters per participant on a conversation
- ``mark-read`` flipping the reader's messages to read
- Every connection of the other participant receiving ``messages-read``

Run with:
    uv run python examples/read_receipts.py
"""

from __future__ import annotations

import asyncio

from relaykit import (
    ConversationSummary,
    InMemoryChatStore,
    InMemoryTransport,
    RelayKit,
    StoredMessage,
    UserProfile,
)


async def main() -> None:
    store = InMemoryChatStore()
    await store.add_user(UserProfile(id="alice", first_name="Alice"))
    await store.add_user(UserProfile(id="bob", first_name="Bob"))
    await store.add_conversation(
        ConversationSummary(id="dm-1", participants=["alice", "bob"], unread_count={"alice": 2})
    )
    for text in ("Lunch?", "Noon at the usual place"):
        await store.add_message(
            StoredMessage(
                conversation_id="dm-1", sender_id="bob", receiver_id="alice", content=text
            )
        )

    transport = InMemoryTransport()
    kit = RelayKit(transport=transport, store=store)

    alice = await transport.open("alice-phone")
    await transport.emit(alice, "join", "alice")
    for conn in ("bob-laptop", "bob-phone"):
        await transport.open(conn)
        await transport.emit(conn, "join", "bob")

    before = await store.get_conversation("dm-1")
    assert before is not None
    print(f"Unread before: {before.unread_count}")

    await transport.emit(alice, "mark-read", {"senderId": "alice", "conversationId": "dm-1"})

    after = await store.get_conversation("dm-1")
    assert after is not None
    print(f"Unread after:  {after.unread_count}")

    print("\nReceipts delivered:")
    for frame in transport.frames(event="messages-read"):
        print(f"  {frame.connection_id}: {frame.payload}")

    await kit.close()


if __name__ == "__main__":
    asyncio.run(main())
