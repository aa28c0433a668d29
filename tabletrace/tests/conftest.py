"""Shared fixtures: an in-memory exporter and a tracing pipeline around it."""

import os
import threading

import pytest

from tabletrace.config import TracingSettings
from tabletrace.errors import ExportError
from tabletrace.tracer.provider import SpanProcessor
from tabletrace.tracing import init_tracing, stop_tracing
from tabletrace.workflow import RETAINED_SPAN_NAMES


class InMemoryExporter:
    """Collects exported spans; optionally fails every export."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.spans = []
        self.batches = 0
        self.shutdown_called = False
        self._lock = threading.Lock()

    def export(self, spans):
        if self.fail:
            raise ExportError("backend unavailable")
        with self._lock:
            self.spans.extend(spans)
            self.batches += 1
        return True

    def shutdown(self):
        self.shutdown_called = True

    @property
    def names(self):
        with self._lock:
            return [span.name for span in self.spans]


class RecordingProcessor(SpanProcessor):
    def __init__(self):
        self.started = []
        self.ended = []

    def on_start(self, span):
        self.started.append(span)

    def on_end(self, span):
        self.ended.append(span)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep TABLETRACE_* variables from the outer environment out of tests."""
    for key in list(os.environ):
        if key.startswith("TABLETRACE_"):
            monkeypatch.delenv(key)


@pytest.fixture
def exporter():
    return InMemoryExporter()


@pytest.fixture
def recording_processor():
    return RecordingProcessor()


@pytest.fixture
def tracing(exporter):
    handle = init_tracing(
        TracingSettings(use_otlp=False, schedule_delay_millis=50),
        exporter=exporter,
        retained_span_names=RETAINED_SPAN_NAMES,
    )
    yield handle
    stop_tracing(handle)


@pytest.fixture
def failing_tracing():
    handle = init_tracing(
        TracingSettings(use_otlp=False, schedule_delay_millis=50),
        exporter=InMemoryExporter(fail=True),
        retained_span_names=RETAINED_SPAN_NAMES,
    )
    yield handle
    stop_tracing(handle)
