"""Tests for batched, asynchronous span export."""

import logging
import time

import pytest

from tabletrace.processors.batch_processor import BatchSpanProcessor
from tabletrace.processors.drop_policy import DropNewestPolicy, DropOldestPolicy
from tabletrace.processors.sampler import Sampler, always_sample
from tabletrace.tracer.provider import TracerProvider


class RaisingExporter:
    def export(self, spans):
        raise ConnectionError("collector unreachable")

    def shutdown(self):
        pass


class RejectingExporter:
    def export(self, spans):
        return False

    def shutdown(self):
        pass


def make_tracer(processor):
    provider = TracerProvider()
    provider.add_span_processor(processor)
    return provider.get_tracer("test")


def finish(tracer, name, **kwargs):
    with tracer.start_as_current_span(name, **kwargs) as span:
        pass
    return span


class TestExport:
    def test_only_sampled_spans_are_exported(self, exporter):
        processor = BatchSpanProcessor(exporter, schedule_delay_millis=60000)
        tracer = make_tracer(processor)
        kept = finish(tracer, "kept", sampler=always_sample())
        finish(tracer, "dropped", sampler=Sampler(0.0), record_events=True)

        processor.force_flush()
        assert exporter.spans == [kept]
        processor.shutdown()

    def test_background_worker_flushes_on_schedule(self, exporter):
        processor = BatchSpanProcessor(exporter, schedule_delay_millis=20)
        tracer = make_tracer(processor)
        finish(tracer, "op")

        deadline = time.monotonic() + 5
        while not exporter.spans and time.monotonic() < deadline:
            time.sleep(0.01)
        assert exporter.names == ["op"]
        processor.shutdown()

    def test_batches_respect_max_size(self, exporter):
        processor = BatchSpanProcessor(
            exporter, schedule_delay_millis=60000, max_export_batch_size=1000
        )
        tracer = make_tracer(processor)
        for _ in range(5):
            finish(tracer, "op")
        processor.max_export_batch_size = 2
        processor.force_flush()
        assert len(exporter.spans) == 5
        assert exporter.batches == 3
        processor.shutdown()

    def test_shutdown_flushes_and_stops(self, exporter):
        processor = BatchSpanProcessor(exporter, schedule_delay_millis=60000)
        tracer = make_tracer(processor)
        finish(tracer, "before")
        processor.shutdown()
        finish(tracer, "after")
        processor.force_flush()

        assert exporter.names == ["before"]
        assert exporter.shutdown_called


class TestExportFailures:
    def test_exporter_exception_is_logged_not_raised(self, caplog):
        processor = BatchSpanProcessor(RaisingExporter(), schedule_delay_millis=60000)
        tracer = make_tracer(processor)
        finish(tracer, "op")

        with caplog.at_level(logging.WARNING, logger="tabletrace.processors.batch_processor"):
            processor.force_flush()
        assert "Failed to export 1 span(s)" in caplog.text
        processor.shutdown()

    def test_rejected_batch_is_logged(self, caplog):
        processor = BatchSpanProcessor(RejectingExporter(), schedule_delay_millis=60000)
        tracer = make_tracer(processor)
        finish(tracer, "op")

        with caplog.at_level(logging.WARNING, logger="tabletrace.processors.batch_processor"):
            processor.force_flush()
        assert "rejected" in caplog.text
        processor.shutdown()


class TestDropPolicies:
    def test_drop_newest_keeps_first_spans(self, exporter):
        processor = BatchSpanProcessor(
            exporter, schedule_delay_millis=60000, max_queue_size=2, drop_policy=DropNewestPolicy()
        )
        tracer = make_tracer(processor)
        spans = [finish(tracer, f"op{i}") for i in range(5)]
        processor.force_flush()

        assert exporter.spans == spans[:2]
        assert processor.dropped_spans == 3
        processor.shutdown()

    def test_drop_oldest_keeps_latest_spans(self, exporter):
        processor = BatchSpanProcessor(
            exporter, schedule_delay_millis=60000, max_queue_size=2, drop_policy=DropOldestPolicy()
        )
        tracer = make_tracer(processor)
        spans = [finish(tracer, f"op{i}") for i in range(5)]
        processor.force_flush()

        assert exporter.spans == spans[-2:]
        processor.shutdown()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
