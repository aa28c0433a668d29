"""Batching span processor with bounded queue and background flush."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Deque, Iterable, List, Optional

from tabletrace.processors.drop_policy import DEFAULT_DROP_POLICY, DropPolicy
from tabletrace.tracer.provider import SpanProcessor
from tabletrace.tracer.span import Span

logger = logging.getLogger(__name__)


class BatchSpanProcessor(SpanProcessor):
    """
    Queues finished, sampled spans and exports them from a background thread.

    ``on_end`` only appends to the queue under a short lock; the exporter is
    never called on the thread that ends the span. Export failures are logged
    and the batch is discarded.
    """

    def __init__(
        self,
        exporter=None,
        *,
        max_queue_size: int = 2048,
        max_export_batch_size: int = 512,
        schedule_delay_millis: int = 5000,
        drop_policy: Optional[DropPolicy] = None,
    ) -> None:
        self.exporter = exporter
        self.max_queue_size = max_queue_size
        self.max_export_batch_size = max_export_batch_size
        self.schedule_delay = schedule_delay_millis / 1000.0
        self.drop_policy = drop_policy or DEFAULT_DROP_POLICY

        self._queue: Deque[Span] = deque()
        self._lock = threading.Lock()
        self._export_lock = threading.Lock()
        self._event = threading.Event()
        self._shutdown = False
        self.dropped_spans = 0
        self._worker = threading.Thread(
            target=self._worker_loop, name="tabletrace-batch-export", daemon=True
        )
        self._worker.start()

    def on_end(self, span: Span) -> None:
        if self._shutdown:
            return
        # Unsampled spans are never exported.
        if not span.sampled:
            return

        with self._lock:
            enqueued = self.drop_policy.handle(self._queue, span, self.max_queue_size)
            if not enqueued:
                self.dropped_spans += 1
            if len(self._queue) >= self.max_export_batch_size:
                self._event.set()

    def force_flush(self, timeout: Optional[float] = None) -> None:
        """Export everything queued so far."""
        deadline = time.time() + timeout if timeout else None
        while True:
            flushed_any = self._flush_once()
            if not flushed_any:
                return
            if deadline and time.time() >= deadline:
                return

    def shutdown(self) -> None:
        """Stop the worker and export what is left."""
        if self._shutdown:
            return
        self._shutdown = True
        self._event.set()
        self._worker.join(timeout=self.schedule_delay * 2)
        self.force_flush()
        if self.exporter is not None:
            try:
                self.exporter.shutdown()
            except Exception:
                logger.warning("Exporter shutdown failed", exc_info=True)

    # Internal
    def _worker_loop(self) -> None:
        """Background worker that periodically flushes spans."""
        while not self._shutdown:
            self._event.wait(timeout=self.schedule_delay)
            self._event.clear()
            while self._flush_once():
                pass

    def _flush_once(self) -> bool:
        """Flush one batch of spans."""
        spans = self._drain_queue(self.max_export_batch_size)
        if not spans:
            return False
        self._export(spans)
        return True

    def _drain_queue(self, limit: int) -> List[Span]:
        """Drain spans from queue up to limit."""
        items: List[Span] = []
        with self._lock:
            while self._queue and len(items) < limit:
                items.append(self._queue.popleft())
        return items

    def _export(self, spans: Iterable[Span]) -> None:
        if self.exporter is None:
            return

        batch = list(spans)
        # Serialize exporter calls between the worker and force_flush.
        with self._export_lock:
            try:
                ok = self.exporter.export(batch)
            except Exception:
                # Export errors are swallowed; the workflow must not notice.
                logger.warning("Failed to export %d span(s)", len(batch), exc_info=True)
                return
        if ok is False:
            logger.warning("Exporter rejected a batch of %d span(s)", len(batch))
