"""In-memory store of recent spans backing the diagnostics page."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, FrozenSet, Iterable, List, Optional

from tabletrace.errors import ConfigError
from tabletrace.processors.drop_policy import DropOldestPolicy, DropPolicy
from tabletrace.tracer.provider import SpanProcessor
from tabletrace.tracer.span import Span, SpanStatus


@dataclass
class SpanNameSummary:
    name: str
    running: int = 0
    completed: int = 0
    errors: int = 0
    retained: bool = False


@dataclass
class StoreSnapshot:
    """Point-in-time copy of the store, safe to read without the lock."""

    running: List[Span] = field(default_factory=list)
    retained: Dict[str, List[Span]] = field(default_factory=dict)
    recent: List[Span] = field(default_factory=list)
    summaries: Dict[str, SpanNameSummary] = field(default_factory=dict)

    def spans_named(self, name: str) -> List[Span]:
        finished = self.retained.get(name) or [s for s in self.recent if s.name == name]
        return [s for s in self.running if s.name == name] + list(finished)


class SampledSpanStore(SpanProcessor):
    """
    Keeps recent spans available for inspection.

    Spans whose name was registered with
    :meth:`register_span_names_for_collection` go to a bounded bucket of their
    own, whatever their sampling decision, so a flood of other spans can never
    evict them. All other spans are kept in a shared bounded buffer, and only
    when sampled. Running spans are tracked between ``on_start`` and ``on_end``.
    """

    def __init__(
        self,
        *,
        max_spans_per_name: int = 16,
        max_sampled_spans: int = 256,
        drop_policy: Optional[DropPolicy] = None,
    ) -> None:
        self.max_spans_per_name = max_spans_per_name
        self.max_sampled_spans = max_sampled_spans
        self.drop_policy = drop_policy or DropOldestPolicy()

        self._lock = threading.Lock()
        self._registered: Optional[FrozenSet[str]] = None
        self._retained: Dict[str, Deque[Span]] = {}
        self._recent: Deque[Span] = deque()
        self._running: Dict[str, Span] = {}
        self._summaries: Dict[str, SpanNameSummary] = {}

    @property
    def registered_span_names(self) -> FrozenSet[str]:
        return self._registered or frozenset()

    def register_span_names_for_collection(self, names: Iterable[str]) -> None:
        """
        Establish the retained-name set. It can be set only once per store.

        Raises:
            ConfigError: if names were already registered
        """
        frozen = frozenset(names)
        with self._lock:
            if self._registered is not None:
                raise ConfigError(
                    "Retained span names are already registered",
                    details={"registered": len(self._registered)},
                )
            self._registered = frozen
            for name in frozen:
                self._retained[name] = deque(maxlen=self.max_spans_per_name)

    def on_start(self, span: Span) -> None:
        with self._lock:
            self._running[span.context.span_id] = span
            self._summary(span.name).running += 1

    def on_end(self, span: Span) -> None:
        with self._lock:
            if self._running.pop(span.context.span_id, None) is not None:
                self._summary(span.name).running -= 1
            summary = self._summary(span.name)
            summary.completed += 1
            if span.status == SpanStatus.ERROR:
                summary.errors += 1

            bucket = self._retained.get(span.name)
            if bucket is not None:
                bucket.append(span)
            elif span.sampled:
                self.drop_policy.handle(self._recent, span, self.max_sampled_spans)

    def snapshot(self) -> StoreSnapshot:
        with self._lock:
            return StoreSnapshot(
                running=list(self._running.values()),
                retained={name: list(bucket) for name, bucket in self._retained.items()},
                recent=list(self._recent),
                summaries={
                    name: SpanNameSummary(
                        name=s.name,
                        running=s.running,
                        completed=s.completed,
                        errors=s.errors,
                        retained=s.retained,
                    )
                    for name, s in self._summaries.items()
                },
            )

    def _summary(self, name: str) -> SpanNameSummary:
        summary = self._summaries.get(name)
        if summary is None:
            summary = SpanNameSummary(name=name, retained=name in self._retained)
            self._summaries[name] = summary
        return summary
