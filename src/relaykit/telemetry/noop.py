"""No-op telemetry provider, the default when nothing is configured."""

from __future__ import annotations

from typing import Any

from relaykit.telemetry.base import SpanKind, TelemetryProvider


class NoopTelemetryProvider(TelemetryProvider):
    """Discards every span and metric. Span IDs are always ``""``."""

    @property
    def name(self) -> str:
        return "noop"

    def start_span(self, kind: SpanKind, name: str, **context: Any) -> str:
        return ""

    def end_span(self, span_id: str, **outcome: Any) -> None:
        return None

    def set_attribute(self, span_id: str, key: str, value: Any) -> None:
        return None

    def record_metric(self, name: str, value: float, **labels: Any) -> None:
        return None
