"""Basic smoke tests for tabletrace.

Quick sanity checks that the public surface imports and works. Behavior is
covered in the per-component test modules.
"""

import pytest

import tabletrace
from tabletrace import always_sample, get_current_span, init_tracing, stop_tracing
from tabletrace.config import TracingSettings


def test_version_exposed():
    """Smoke test: version is accessible."""
    assert hasattr(tabletrace, '__version__')
    assert isinstance(tabletrace.__version__, str)
    parts = tabletrace.__version__.split('.')
    assert len(parts) >= 2


def test_init_and_stop_tracing(exporter):
    """Smoke test: a span goes from tracer to exporter."""
    handle = init_tracing(TracingSettings(use_otlp=False), exporter=exporter)
    with handle.tracer.start_as_current_span("smoke", sampler=always_sample()) as span:
        assert get_current_span() is span
        span.annotate("hello")
    stop_tracing(handle)

    assert exporter.names == ["smoke"]
    assert exporter.shutdown_called


def test_stop_tracing_twice_is_safe(exporter):
    handle = init_tracing(TracingSettings(use_otlp=False), exporter=exporter)
    stop_tracing(handle)
    stop_tracing(handle)
    stop_tracing(None)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
