"""Run a relay server over WebSocket.

Clients connect to ``ws://localhost:4000`` and exchange JSON frames::

    {"event": "join", "data": "alice"}
    {"event": "send-message", "data": {"senderId": "alice", ...}, "ack": 1}

Environment:
    PORT        listening port (default 4000)
    CLIENT_URL  comma-separated list of allowed browser origins
                (default http://localhost:3000)

Run with:
    uv run python examples/websocket_server.py
"""

from __future__ import annotations

import asyncio
import logging

from relaykit import (
    InMemoryChatStore,
    RelayKit,
    UserProfile,
    WebSocketServerConfig,
    WebSocketServerTransport,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")


async def main() -> None:
    store = InMemoryChatStore()
    for user_id, first_name in [("alice", "Alice"), ("bob", "Bob")]:
        await store.add_user(UserProfile(id=user_id, first_name=first_name))

    transport = WebSocketServerTransport(WebSocketServerConfig.from_env(host="0.0.0.0"))
    kit = RelayKit(transport=transport, store=store)

    try:
        await transport.serve_forever()
    finally:
        await kit.close()


if __name__ == "__main__":
    asyncio.run(main())
