"""TracerProvider: owns tracers, the default sampler and span processors."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from opentelemetry.sdk.resources import Resource as OTelResource

logger = logging.getLogger(__name__)


class SpanProcessor:
    """
    Base span processor interface.

    Processors are called synchronously on the thread that starts or ends the
    span, so implementations must keep their critical sections short.
    """

    def on_start(self, span) -> None:
        """
        Called when a span starts.

        Args:
            span: tabletrace Span instance
        """
        pass

    def on_end(self, span) -> None:
        """
        Called after a span has ended (the span is finalized).

        Args:
            span: tabletrace Span instance
        """
        pass

    def shutdown(self) -> None:
        """Shutdown the processor."""
        pass

    def force_flush(self, timeout: Optional[float] = None) -> None:
        """Force flush any pending spans."""
        pass


class TracerProvider:
    """
    TracerProvider holding span processors and the default sampler.

    Processor failures never propagate to the code that starts or ends spans.
    """

    def __init__(
        self,
        resource: Optional[Dict[str, str]] = None,
        sampler: Optional[Any] = None,
    ) -> None:
        """
        Initialize TracerProvider.

        Args:
            resource: Resource attributes dictionary (converted to OTel Resource)
            sampler: Default sampler for root spans without an explicit one
        """
        self.resource = resource or {}
        self.otel_resource = OTelResource.create(self.resource)

        if sampler is None:
            from tabletrace.processors.sampler import AlwaysOnSampler
            sampler = AlwaysOnSampler()
        self.sampler = sampler

        self._span_processors: List[SpanProcessor] = []
        self._tracers: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._shutdown = False

    def get_tracer(self, name: str) -> "Tracer":
        """
        Get a tracer by name.

        Args:
            name: Instrumentation scope name

        Returns:
            tabletrace Tracer instance
        """
        with self._lock:
            tracer = self._tracers.get(name)
            if tracer is None:
                from tabletrace.tracer.tracer import Tracer
                tracer = Tracer(self, name)
                self._tracers[name] = tracer
            return tracer

    def add_span_processor(self, processor: SpanProcessor) -> None:
        with self._lock:
            self._span_processors = self._span_processors + [processor]

    @property
    def span_processors(self) -> List[SpanProcessor]:
        return list(self._span_processors)

    def _notify_span_start(self, span) -> None:
        for processor in self._span_processors:
            try:
                processor.on_start(span)
            except Exception:
                # Processors should not crash tracing
                logger.warning("Span processor %r failed on start", processor, exc_info=True)

    def _notify_span_end(self, span) -> None:
        for processor in self._span_processors:
            try:
                processor.on_end(span)
            except Exception:
                logger.warning("Span processor %r failed on end", processor, exc_info=True)

    def force_flush(self, timeout: Optional[float] = None) -> None:
        """Force flush all processors."""
        for processor in self._span_processors:
            try:
                processor.force_flush(timeout=timeout)
            except Exception:
                logger.warning("Span processor %r failed to flush", processor, exc_info=True)

    def shutdown(self) -> None:
        """Shutdown the provider and all processors. Safe to call more than once."""
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True
        for processor in self._span_processors:
            try:
                processor.shutdown()
            except Exception:
                logger.warning("Span processor %r failed to shut down", processor, exc_info=True)
