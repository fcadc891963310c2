"""Recording telemetry provider for assertions in tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from relaykit.telemetry.base import Span, SpanKind, TelemetryProvider


@dataclass(frozen=True)
class RecordedMetric:
    name: str
    value: float
    unit: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)


class MockTelemetryProvider(TelemetryProvider):
    """Keeps finished spans and metrics in memory.

    Example::

        telemetry = MockTelemetryProvider()
        kit = RelayKit(telemetry=telemetry)
        # ... drive some events ...
        [send] = telemetry.get_spans(SpanKind.ROUTE_SEND)
        assert send.attributes[Attr.DELIVERY_COUNT] == 3
    """

    def __init__(self) -> None:
        self._open: dict[str, Span] = {}
        self.spans: list[Span] = []
        self.metrics: list[RecordedMetric] = []

    @property
    def name(self) -> str:
        return "mock"

    def get_spans(self, kind: SpanKind) -> list[Span]:
        return [s for s in self.spans if s.kind == kind]

    def get_metrics(self, name: str) -> list[RecordedMetric]:
        return [m for m in self.metrics if m.name == name]

    def start_span(
        self,
        kind: SpanKind,
        name: str,
        *,
        attributes: dict[str, Any] | None = None,
        user_id: str | None = None,
        connection_id: str | None = None,
    ) -> str:
        span = Span(
            kind,
            name,
            attributes=dict(attributes or {}),
            user_id=user_id,
            connection_id=connection_id,
        )
        self._open[span.id] = span
        return span.id

    def end_span(
        self,
        span_id: str,
        *,
        status: str = "ok",
        error_message: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> None:
        span = self._open.pop(span_id, None)
        if span is None:
            return
        span.attributes.update(attributes or {})
        span.status = status
        span.error_message = error_message
        span.end_time = datetime.now(UTC)
        self.spans.append(span)

    def set_attribute(self, span_id: str, key: str, value: Any) -> None:
        if span_id in self._open:
            self._open[span_id].attributes[key] = value

    def record_metric(
        self,
        name: str,
        value: float,
        *,
        unit: str = "",
        attributes: dict[str, Any] | None = None,
    ) -> None:
        self.metrics.append(RecordedMetric(name, value, unit, dict(attributes or {})))

    def reset(self) -> None:
        self._open.clear()
        self.spans.clear()
        self.metrics.clear()
