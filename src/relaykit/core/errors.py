"""Exception hierarchy for relaykit."""

from __future__ import annotations

__all__ = [
    "ConnectionOwnershipError",
    "InvalidPayloadError",
    "RelayKitError",
    "SenderNotFoundError",
    "StorageUnavailableError",
]


class RelayKitError(Exception):
    """Base exception for all relaykit errors."""


class InvalidPayloadError(RelayKitError):
    """A required field is missing or malformed on an inbound event."""


class SenderNotFoundError(RelayKitError):
    """The sender of a message has no stored profile."""


class StorageUnavailableError(RelayKitError):
    """A call to the storage collaborator failed."""


class ConnectionOwnershipError(RelayKitError):
    """A connection is already registered under a different user."""

    def __init__(self, connection_id: str, owner_id: str) -> None:
        super().__init__(f"Connection {connection_id} is already registered to {owner_id}")
        self.connection_id = connection_id
        self.owner_id = owner_id
