"""Tracer: creates spans with explicit parent linkage and per-span samplers."""

from __future__ import annotations

from typing import Any, Dict, Optional, TYPE_CHECKING

from tabletrace.processors.sampler import Sampler
from tabletrace.tracer.span import Span
from tabletrace.tracer.span_context import SpanContext
from tabletrace.utils.helpers import generate_span_id, generate_trace_id

if TYPE_CHECKING:
    from tabletrace.tracer.provider import TracerProvider


class Tracer:
    """
    Span factory bound to a provider and an instrumentation scope.

    Parents are always passed explicitly. The current span (see
    ``tabletrace.context``) is a convenience for annotating and is never used
    to infer a parent.
    """

    def __init__(self, provider: "TracerProvider", instrumentation_scope: str):
        """
        Initialize tracer.

        Args:
            provider: tabletrace TracerProvider instance
            instrumentation_scope: Instrumentation scope name
        """
        self._provider = provider
        self.instrumentation_scope = instrumentation_scope

    @property
    def provider(self) -> "TracerProvider":
        return self._provider

    def start_span(
        self,
        name: str,
        parent: Optional[Span] = None,
        sampler: Optional[Sampler] = None,
        record_events: Optional[bool] = None,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> Span:
        """
        Start a new span.

        Args:
            name: Span name
            parent: Explicit parent span, or None for a new root span
            sampler: Sampler for this span. Without one, a child follows its
                parent's decision and a root uses the provider default.
            record_events: Keep annotations even if not sampled. Defaults to
                the parent's setting (False for roots).
            attributes: Optional attributes dictionary

        Returns:
            tabletrace Span instance (use it as a context manager to scope it)
        """
        parent_context: Optional[SpanContext] = parent.context if parent else None
        trace_id = parent_context.trace_id if parent_context else generate_trace_id()

        if sampler is not None:
            sampled = self._decide(sampler, parent_context, name)
        elif parent_context is not None:
            sampled = parent_context.sampled
        else:
            sampled = self._decide(self._provider.sampler, None, name)

        if record_events is None:
            record_events = parent.record_events if parent else False

        span = Span(
            name=name,
            tracer=self,
            context=SpanContext(
                trace_id=trace_id,
                span_id=generate_span_id(),
                trace_flags=1 if sampled else 0,
            ),
            parent=parent,
            record_events=record_events,
            attributes=attributes,
        )
        self._provider._notify_span_start(span)
        return span

    def start_as_current_span(
        self,
        name: str,
        parent: Optional[Span] = None,
        sampler: Optional[Sampler] = None,
        record_events: Optional[bool] = None,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> Span:
        """
        Start a span to be used as a context manager; entering it makes it current.
        """
        return self.start_span(
            name=name,
            parent=parent,
            sampler=sampler,
            record_events=record_events,
            attributes=attributes,
        )

    def get_current_span(self) -> Optional[Span]:
        """Get the current span."""
        from tabletrace.context import context as span_context
        return span_context.get_current_span()

    @staticmethod
    def _decide(sampler: Any, parent_context: Optional[SpanContext], name: str) -> bool:
        return bool(sampler.should_sample(parent_context=parent_context, name=name).sampled)

    def _on_span_end(self, span: Span) -> None:
        """Called by Span.end() once the span is finalized."""
        self._provider._notify_span_end(span)
