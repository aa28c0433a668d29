"""tabletrace: a traced table-store lifecycle with live span diagnostics."""

from tabletrace.tracer import Annotation, Span, SpanContext, SpanStatus, Tracer, TracerProvider
from tabletrace.context import annotate, get_current_span
from tabletrace.processors import Sampler, always_sample, probability_sampler
from tabletrace.tracing import TracingHandle, init_tracing, stop_tracing

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Annotation",
    "Span",
    "SpanContext",
    "SpanStatus",
    "Tracer",
    "TracerProvider",
    "Sampler",
    "always_sample",
    "probability_sampler",
    "annotate",
    "get_current_span",
    "TracingHandle",
    "init_tracing",
    "stop_tracing",
]
