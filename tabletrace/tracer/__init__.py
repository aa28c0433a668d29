"""Tracer components: spans, scopes and the provider."""

from tabletrace.tracer.provider import SpanProcessor, TracerProvider
from tabletrace.tracer.span import Annotation, Span, SpanStatus
from tabletrace.tracer.span_context import SpanContext
from tabletrace.tracer.tracer import Tracer

__all__ = [
    "Annotation",
    "Span",
    "SpanStatus",
    "SpanContext",
    "Tracer",
    "TracerProvider",
    "SpanProcessor",
]
