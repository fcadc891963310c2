"""Presence tracking: online/offline transitions driven by connection count."""

from __future__ import annotations

import logging

from relaykit.core._helpers import EmitFn, guarded, noop_emit
from relaykit.core.config import RelayConfig
from relaykit.core.errors import ConnectionOwnershipError, StorageUnavailableError
from relaykit.models.delivery import UserStatusChange
from relaykit.models.enums import OutboundEvent, PresenceStatus
from relaykit.registry.base import ConnectionRegistry
from relaykit.store.base import ChatStore
from relaykit.telemetry.base import Attr, SpanKind, TelemetryProvider
from relaykit.telemetry.noop import NoopTelemetryProvider
from relaykit.transport.base import Transport

logger = logging.getLogger("relaykit.presence")


class PresenceTracker:
    """Derives presence from the connection registry.

    A user goes online when their first connection registers and offline
    when their last one is removed. Extra connections, or closing one of
    several, change nothing visible. Each transition persists the status
    and broadcasts ``user-status-change`` to the other connections; both
    side effects are best-effort and neither blocks the other.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        store: ChatStore,
        transport: Transport,
        *,
        config: RelayConfig | None = None,
        telemetry: TelemetryProvider | None = None,
        emit: EmitFn | None = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._transport = transport
        self._config = config or RelayConfig()
        self._telemetry = telemetry or NoopTelemetryProvider()
        self._emit = emit or noop_emit

    def is_online(self, user_id: str) -> bool:
        return self._registry.is_online(user_id)

    def status_of(self, user_id: str) -> PresenceStatus:
        return PresenceStatus.ONLINE if self.is_online(user_id) else PresenceStatus.OFFLINE

    async def connect(self, user_id: str, connection_id: str) -> PresenceStatus | None:
        """Register *connection_id* for *user_id*.

        A connection that re-joins as a different user is first removed
        from its previous owner, with that owner's transition applied.

        Returns:
            ``PresenceStatus.ONLINE`` if the user just came online,
            otherwise ``None``.
        """
        owner = self._registry.owner_of(connection_id)
        if owner is not None and owner != user_id:
            logger.info(
                "Connection %s re-joined as %s (was %s)",
                connection_id,
                user_id,
                owner,
                extra={"connection_id": connection_id, "user_id": user_id},
            )
            await self.disconnect(connection_id)

        try:
            first = self._registry.register(user_id, connection_id)
        except ConnectionOwnershipError as exc:
            logger.warning("Join rejected: %s", exc, extra={"connection_id": connection_id})
            return None

        if not first:
            return None
        await self._transition(user_id, connection_id, PresenceStatus.ONLINE)
        return PresenceStatus.ONLINE

    async def disconnect(self, connection_id: str) -> PresenceStatus | None:
        """Remove *connection_id*.

        Returns:
            ``PresenceStatus.OFFLINE`` if its owner just went offline,
            otherwise ``None``.
        """
        removed = self._registry.deregister(connection_id)
        if removed.user_id is None or not removed.last:
            return None
        await self._transition(removed.user_id, connection_id, PresenceStatus.OFFLINE)
        return PresenceStatus.OFFLINE

    async def _transition(
        self, user_id: str, connection_id: str, status: PresenceStatus
    ) -> None:
        with self._telemetry.span(
            SpanKind.PRESENCE_TRANSITION,
            f"presence.{status}",
            attributes={Attr.PRESENCE_STATUS: str(status)},
            user_id=user_id,
            connection_id=connection_id,
        ):
            try:
                await guarded("set_user_status", self._store.set_user_status(user_id, status))
            except StorageUnavailableError:
                logger.exception(
                    "Failed to persist status %s for user %s",
                    status,
                    user_id,
                    extra={"user_id": user_id, "status": str(status)},
                )

            if self._config.broadcast_presence:
                notice = UserStatusChange(user_id=user_id, status=status)
                try:
                    await self._transport.broadcast_except(
                        connection_id, OutboundEvent.USER_STATUS_CHANGE, notice.to_payload()
                    )
                except Exception:
                    logger.exception(
                        "Presence broadcast failed for user %s",
                        user_id,
                        extra={"user_id": user_id, "status": str(status)},
                    )

        logger.info("User %s is %s", user_id, status, extra={"user_id": user_id})
        await self._emit(
            "presence_changed",
            user_id=user_id,
            connection_id=connection_id,
            data={"status": str(status)},
        )
