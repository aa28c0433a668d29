"""One-time tracing start-up: provider, exporter, batch processor and span store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from tabletrace.config import DiagnosticsSettings, TracingSettings
from tabletrace.errors import InitializationError
from tabletrace.processors.batch_processor import BatchSpanProcessor
from tabletrace.processors.logging_processor import LoggingSpanProcessor
from tabletrace.processors.sampler import Sampler
from tabletrace.processors.span_store import SampledSpanStore
from tabletrace.tracer.provider import TracerProvider
from tabletrace.tracer.tracer import Tracer

logger = logging.getLogger(__name__)

TRACER_NAME = "tabletrace"


@dataclass(frozen=True)
class TracingHandle:
    """Everything a component needs from tracing, created once at start-up."""

    provider: TracerProvider
    tracer: Tracer
    span_store: SampledSpanStore
    exporter: Optional[Any] = None

    def shutdown(self) -> None:
        self.provider.shutdown()


def build_exporter(settings: TracingSettings) -> Optional[Any]:
    """Create the exporter selected by the settings, or None."""
    if settings.use_otlp:
        from tabletrace.exporter.otlp_exporter import OTLPExporter
        return OTLPExporter(endpoint=settings.endpoint, api_key=settings.api_key)
    if settings.enable_console:
        from tabletrace.exporter.console_exporter import ConsoleExporter
        return ConsoleExporter()
    return None


def init_tracing(
    settings: TracingSettings,
    *,
    exporter: Optional[Any] = None,
    retained_span_names: Iterable[str] = (),
    diagnostics: Optional[DiagnosticsSettings] = None,
) -> TracingHandle:
    """
    Build the tracing pipeline.

    Args:
        settings: Tracing settings
        exporter: Exporter to use instead of the one the settings select
        retained_span_names: Names kept for inspection regardless of sampling
        diagnostics: Span store sizing

    Raises:
        InitializationError: if the exporter cannot be created
    """
    diagnostics = diagnostics or DiagnosticsSettings()
    provider = TracerProvider(
        resource={"service.name": settings.service_name},
        sampler=Sampler(settings.default_sample_rate),
    )

    span_store = SampledSpanStore(
        max_spans_per_name=diagnostics.max_spans_per_name,
        max_sampled_spans=diagnostics.max_sampled_spans,
    )
    span_store.register_span_names_for_collection(retained_span_names)
    provider.add_span_processor(span_store)

    if exporter is None:
        try:
            exporter = build_exporter(settings)
        except Exception as exc:
            raise InitializationError(f"Failed to create span exporter: {exc}") from exc
    if exporter is not None:
        provider.add_span_processor(
            BatchSpanProcessor(
                exporter,
                max_queue_size=settings.max_queue_size,
                max_export_batch_size=settings.max_export_batch_size,
                schedule_delay_millis=settings.schedule_delay_millis,
            )
        )
        logger.info("Exporting sampled spans with %s", type(exporter).__name__)

    if settings.debug:
        provider.add_span_processor(LoggingSpanProcessor())

    return TracingHandle(
        provider=provider,
        tracer=provider.get_tracer(TRACER_NAME),
        span_store=span_store,
        exporter=exporter,
    )


def stop_tracing(handle: Optional[TracingHandle]) -> None:
    """Flush pending spans and stop background export. Safe to call twice."""
    if handle is None:
        return
    handle.shutdown()
