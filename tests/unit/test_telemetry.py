"""Tracing and logging helpers."""

import logging

import pytest
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.trace.export import ConsoleSpanExporter

from fixlify.core.config import Settings
from fixlify.shared.context import get_correlation_id, reset_correlation_id, set_correlation_id
from fixlify.shared.telemetry.logging import CorrelationIdFilter
from fixlify.shared.telemetry.telemetry import AutomationTelemetry, build_span_exporter
from fixlify.shared.telemetry.tracing import traced


def _record() -> logging.LogRecord:
    return logging.LogRecord("fixlify.test", logging.INFO, __file__, 1, "hello", None, None)


@pytest.mark.parametrize(
    ("kind", "endpoint", "expected"),
    [
        ("none", None, type(None)),
        ("console", None, ConsoleSpanExporter),
        ("otlp", None, ConsoleSpanExporter),
        ("zipkin", None, ConsoleSpanExporter),
        (" OTLP ", "http://collector:4317", OTLPSpanExporter),
    ],
)
def test_build_span_exporter(kind, endpoint, expected) -> None:
    assert isinstance(build_span_exporter(kind, endpoint), expected)


def test_telemetry_from_settings_clamps_sample_rate() -> None:
    settings = Settings(
        _env_file=None,
        telemetry_exporter="none",
        telemetry_sample_rate=3.0,
        telemetry_environment="staging",
    )
    telemetry = AutomationTelemetry.from_settings(settings)
    assert telemetry.sample_rate == 1.0
    assert telemetry.environment == "staging"
    assert telemetry.provider is None


def test_log_records_carry_correlation_id() -> None:
    record = _record()
    CorrelationIdFilter().filter(record)
    assert record.correlation_id == "-"

    token = set_correlation_id("req-42")
    try:
        record = _record()
        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "req-42"
    finally:
        reset_correlation_id(token)
    assert get_correlation_id() is None


async def test_traced_returns_result_and_propagates_errors() -> None:
    @traced("test.ok")
    async def ok(value: int) -> int:
        return value * 2

    @traced("test.boom")
    async def boom() -> None:
        raise RuntimeError("provider down")

    assert await ok(21) == 42
    assert ok.__name__ == "ok"
    with pytest.raises(RuntimeError, match="provider down"):
        await boom()
