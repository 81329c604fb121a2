"""Logging setup, tracing setup and span helpers."""

from fixlify.shared.telemetry.logging import get_logger, setup_logging
from fixlify.shared.telemetry.tracing import add_span_attributes, traced

__all__ = ["add_span_attributes", "get_logger", "setup_logging", "traced"]
