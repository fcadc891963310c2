"""Engine configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RelayConfig(BaseModel):
    """Behavioural switches for the relay engine.

    Attributes:
        echo_to_sender: Deliver each message to the sender's own
            connections too, so their other devices see it.
        broadcast_presence: Announce online/offline transitions to the
            other open connections.
        max_content_length: Reject messages whose content is longer than
            this many characters. ``None`` disables the check.
    """

    echo_to_sender: bool = True
    broadcast_presence: bool = True
    max_content_length: int | None = Field(default=None, ge=1)
