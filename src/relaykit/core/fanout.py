"""Resolve users to live connections and deliver one event to each."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from relaykit.registry.base import ConnectionRegistry
from relaykit.transport.base import Transport

logger = logging.getLogger("relaykit.fanout")


@dataclass(frozen=True)
class FanoutResult:
    delivered: int = 0
    failed: int = 0


class Fanout:
    """Delivers an event to every live connection of a set of users.

    Connection sets are snapshotted from the registry before any send, and
    sends happen without holding the registry lock. Each connection
    receives the event at most once even if it is reachable through
    several of the target users.
    """

    def __init__(self, registry: ConnectionRegistry, transport: Transport) -> None:
        self._registry = registry
        self._transport = transport

    def resolve(self, user_ids: Iterable[str]) -> list[str]:
        targets: dict[str, None] = {}
        for user_id in user_ids:
            for connection_id in sorted(self._registry.connections_of(user_id)):
                targets.setdefault(connection_id)
        return list(targets)

    async def to_users(self, user_ids: Iterable[str], event: str, payload: Any) -> FanoutResult:
        delivered = failed = 0
        for connection_id in self.resolve(user_ids):
            try:
                await self._transport.send_to_connection(connection_id, event, payload)
            except Exception:
                failed += 1
                logger.warning(
                    "Failed to deliver %s to connection %s",
                    event,
                    connection_id,
                    exc_info=True,
                    extra={"event": event, "connection_id": connection_id},
                )
            else:
                delivered += 1
        return FanoutResult(delivered=delivered, failed=failed)
