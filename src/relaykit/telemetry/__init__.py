"""Telemetry provider system for relaykit."""

from relaykit.telemetry.base import Attr, Span, SpanKind, TelemetryProvider
from relaykit.telemetry.config import TelemetryConfig
from relaykit.telemetry.mock import MockTelemetryProvider, RecordedMetric
from relaykit.telemetry.noop import NoopTelemetryProvider

__all__ = [
    "Attr",
    "MockTelemetryProvider",
    "NoopTelemetryProvider",
    "RecordedMetric",
    "Span",
    "SpanKind",
    "TelemetryConfig",
    "TelemetryProvider",
]
