"""Telemetry provider ABC, Span dataclass, SpanKind enum, and Attr constants."""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class SpanKind(StrEnum):
    """Span classifications for telemetry."""

    ROUTE_SEND = "router.send"
    ROUTE_TYPING = "router.typing"
    READ_RECEIPT = "receipts.mark_read"
    PRESENCE_TRANSITION = "presence.transition"


class Attr:
    """Well-known attribute key constants for telemetry spans and metrics."""

    USER_ID = "user_id"
    CONNECTION_ID = "connection_id"
    CONVERSATION_ID = "conversation_id"

    # Routing
    MESSAGE_ID = "message.id"
    RECEIVER_ID = "message.receiver_id"
    DELIVERY_COUNT = "delivery.count"
    DELIVERY_FAILURES = "delivery.failures"

    # Presence
    PRESENCE_STATUS = "presence.status"

    # Read receipts
    MESSAGES_UPDATED = "receipts.messages_updated"


@dataclass
class Span:
    """A timed unit of engine work, tagged with the user and connection involved."""

    kind: SpanKind
    name: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    attributes: dict[str, Any] = field(default_factory=dict)
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    status: str = "ok"
    error_message: str | None = None
    user_id: str | None = None
    connection_id: str | None = None


class TelemetryProvider(ABC):
    """Abstract base class for telemetry providers.

    Providers collect span and metric data from relaykit operations.
    The default ``NoopTelemetryProvider`` has zero overhead.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for identification."""
        ...

    @abstractmethod
    def start_span(
        self,
        kind: SpanKind,
        name: str,
        *,
        attributes: dict[str, Any] | None = None,
        user_id: str | None = None,
        connection_id: str | None = None,
    ) -> str:
        """Start a new telemetry span.

        Returns:
            A unique span ID string.
        """
        ...

    @abstractmethod
    def end_span(
        self,
        span_id: str,
        *,
        status: str = "ok",
        error_message: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> None:
        """End a previously started span."""
        ...

    @abstractmethod
    def set_attribute(self, span_id: str, key: str, value: Any) -> None:
        """Set an attribute on an active span."""
        ...

    @abstractmethod
    def record_metric(
        self,
        name: str,
        value: float,
        *,
        unit: str = "",
        attributes: dict[str, Any] | None = None,
    ) -> None:
        """Record a metric value."""
        ...

    def close(self) -> None:  # noqa: B027
        """Close the provider and flush any pending data."""

    def reset(self) -> None:  # noqa: B027
        """Reset internal state (useful for testing)."""

    @contextmanager
    def span(
        self,
        kind: SpanKind,
        name: str,
        **kwargs: Any,
    ) -> Generator[str, None, None]:
        """Context manager for span lifecycle.

        Yields the span ID. Automatically ends the span on exit,
        recording error status if an exception occurs.
        """
        span_id = self.start_span(kind, name, **kwargs)
        try:
            yield span_id
            self.end_span(span_id)
        except Exception as exc:
            self.end_span(span_id, status="error", error_message=str(exc))
            raise
