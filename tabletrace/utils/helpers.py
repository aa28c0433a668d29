"""Helper functions for span identifiers and timestamps."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from opentelemetry.sdk.trace.id_generator import RandomIdGenerator

_id_generator = RandomIdGenerator()


def generate_trace_id() -> str:
    """Generate a new 32-character hex trace id."""
    return format_trace_id(_id_generator.generate_trace_id())


def generate_span_id() -> str:
    """Generate a new 16-character hex span id."""
    return format_span_id(_id_generator.generate_span_id())


def format_trace_id(trace_id: int) -> str:
    """
    Format OTel trace_id (int) to hex string.

    Args:
        trace_id: OTel trace_id as 128-bit int

    Returns:
        32-character hex string
    """
    return format(trace_id, '032x')


def format_span_id(span_id: int) -> str:
    """
    Format OTel span_id (int) to hex string.

    Args:
        span_id: OTel span_id as 64-bit int

    Returns:
        16-character hex string
    """
    return format(span_id, '016x')


def parse_trace_id(hex_string: str) -> int:
    if not hex_string:
        return 0
    return int(hex_string, 16)


def parse_span_id(hex_string: str) -> int:
    if not hex_string:
        return 0
    return int(hex_string, 16)


def format_timestamp_ns(timestamp_ns: Optional[int]) -> str:
    """Render a nanosecond epoch timestamp as UTC ISO-8601 with microseconds."""
    if timestamp_ns is None:
        return "-"
    moment = datetime.fromtimestamp(timestamp_ns / 1e9, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
