"""OTLP exporter using OpenTelemetry OTLP HTTP exporter."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter as OTelOTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import Event, ReadableSpan
from opentelemetry.sdk.trace.export import SpanExportResult
from opentelemetry.sdk.util.instrumentation import InstrumentationScope
from opentelemetry.trace import SpanContext, SpanKind, Status, StatusCode, TraceFlags

from tabletrace.tracer.span import Span, SpanStatus
from tabletrace.utils.helpers import parse_span_id, parse_trace_id

logger = logging.getLogger(__name__)


class OTLPExporter:
    """
    Ships tabletrace spans to an OTLP/HTTP backend.

    Spans are converted to OpenTelemetry SDK ``ReadableSpan`` objects; each
    annotation becomes a span event named after its message. Endpoint and
    headers not given here are resolved by OpenTelemetry from the
    ``OTEL_EXPORTER_OTLP_*`` environment variables.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        headers: Optional[dict] = None,
    ) -> None:
        """
        Initialize OTLP exporter.

        Args:
            endpoint: OTLP endpoint URL (defaults to OTel default)
            api_key: Optional API key for authentication
            timeout: Request timeout in seconds
            headers: Optional additional headers
        """
        export_headers = dict(headers) if headers else {}
        if api_key:
            export_headers["Authorization"] = f"Bearer {api_key}"

        self._otel_exporter = OTelOTLPSpanExporter(
            endpoint=endpoint,
            timeout=timeout,
            headers=export_headers if export_headers else None,
        )

        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout

    def export(self, spans: Iterable[Any]) -> bool:
        """
        Export spans using OTLP format.

        Returns:
            True if export succeeded, False otherwise
        """
        readable_spans = to_readable_spans(spans)
        if not readable_spans:
            return True
        result = self._otel_exporter.export(readable_spans)
        return result == SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        """Shutdown the exporter."""
        self._otel_exporter.shutdown()

    def force_flush(self, timeout_millis: Optional[int] = None) -> None:
        self._otel_exporter.force_flush(timeout_millis=timeout_millis or 30000)


def to_readable_spans(spans: Iterable[Any]) -> List[ReadableSpan]:
    """Convert finished tabletrace spans; unconvertible entries are skipped."""
    readable_spans: List[ReadableSpan] = []
    for span in spans:
        if isinstance(span, ReadableSpan):
            readable_spans.append(span)
            continue
        try:
            readable_spans.append(_to_readable_span(span))
        except Exception:
            logger.warning("Skipping span %r: conversion to OTLP failed", span, exc_info=True)
    return readable_spans


def _to_readable_span(span: Span) -> ReadableSpan:
    flags = TraceFlags(TraceFlags.SAMPLED if span.sampled else TraceFlags.DEFAULT)
    trace_id = parse_trace_id(span.context.trace_id)
    otel_context = SpanContext(
        trace_id=trace_id,
        span_id=parse_span_id(span.context.span_id),
        is_remote=False,
        trace_flags=flags,
    )

    parent_context = None
    if span.parent_span_id:
        parent_context = SpanContext(
            trace_id=trace_id,
            span_id=parse_span_id(span.parent_span_id),
            is_remote=False,
            trace_flags=flags,
        )

    if span.status == SpanStatus.OK:
        otel_status = Status(status_code=StatusCode.OK)
    elif span.status == SpanStatus.ERROR:
        otel_status = Status(status_code=StatusCode.ERROR, description=span.status_description)
    else:
        otel_status = Status(status_code=StatusCode.UNSET)

    events = [
        Event(
            name=annotation.message,
            attributes=_string_attributes(annotation.attributes),
            timestamp=annotation.timestamp_ns,
        )
        for annotation in span.annotations
    ]

    resource = Resource.create({})
    tracer = getattr(span, "tracer", None)
    scope_name = "tabletrace"
    if tracer is not None:
        resource = tracer.provider.otel_resource
        scope_name = tracer.instrumentation_scope

    return ReadableSpan(
        name=span.name,
        context=otel_context,
        parent=parent_context,
        resource=resource,
        attributes=_string_attributes(span.attributes),
        events=events,
        links=(),
        kind=SpanKind.INTERNAL,
        status=otel_status,
        start_time=span.start_time_ns,
        end_time=span.end_time_ns,
        instrumentation_scope=InstrumentationScope(scope_name),
    )


def _string_attributes(attributes: dict) -> dict:
    # OTLP attribute values must be primitives.
    return {
        key: value if isinstance(value, (bool, str, int, float)) else str(value)
        for key, value in (attributes or {}).items()
    }
