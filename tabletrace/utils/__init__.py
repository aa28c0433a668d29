"""Utility functions for tabletrace."""

from tabletrace.utils.helpers import (
    format_span_id,
    format_timestamp_ns,
    format_trace_id,
    generate_span_id,
    generate_trace_id,
    parse_span_id,
    parse_trace_id,
)

__all__ = [
    "generate_trace_id",
    "generate_span_id",
    "format_trace_id",
    "format_span_id",
    "parse_trace_id",
    "parse_span_id",
    "format_timestamp_ns",
]
