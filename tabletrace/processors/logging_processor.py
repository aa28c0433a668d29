"""Span processor that logs spans when they end."""

from __future__ import annotations

import logging
from typing import Optional

from tabletrace.tracer.provider import SpanProcessor


class LoggingSpanProcessor(SpanProcessor):
    """Logs span summary on end using the standard logging module."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("tabletrace.traces")

    def on_end(self, span) -> None:
        self.logger.debug(
            "[trace] name=%s trace_id=%s span_id=%s parent=%s sampled=%s status=%s "
            "duration_ns=%s annotations=%d",
            span.name,
            span.context.trace_id,
            span.context.span_id,
            span.parent_span_id,
            span.sampled,
            span.status.name,
            span.duration_ns,
            len(span.annotations),
        )

    def shutdown(self) -> None:
        return None

    def force_flush(self, timeout: Optional[float] = None) -> None:
        return None
