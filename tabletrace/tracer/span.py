"""Span implementation: a timed, annotated record of one logical operation."""

from __future__ import annotations

import logging
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from tabletrace.context import context as span_context
from tabletrace.tracer.span_context import SpanContext

if TYPE_CHECKING:
    from tabletrace.tracer.tracer import Tracer

logger = logging.getLogger(__name__)


class SpanStatus(Enum):
    UNSET = 0
    OK = 1
    ERROR = 2


@dataclass(frozen=True)
class Annotation:
    timestamp_ns: int
    message: str
    attributes: Dict[str, Any] = field(default_factory=dict)


class Span:
    """
    A span with explicit parent linkage.

    The parent is held by reference only; it is never ended or mutated through
    the child. A span is mutated only by the thread that entered it and is
    immutable once ``end()`` has run.
    """

    def __init__(
        self,
        name: str,
        tracer: "Tracer",
        context: SpanContext,
        parent: Optional["Span"] = None,
        record_events: bool = False,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize span.

        Args:
            name: Span (operation) name
            tracer: Tracer that created the span
            context: Ids and sampling decision for the span
            parent: Optional parent span
            record_events: Keep annotations even when the span is not sampled
            attributes: Optional initial attributes
        """
        self.name = name
        self.tracer = tracer
        self.context = context
        self.parent = parent
        self.parent_span_id: Optional[str] = parent.context.span_id if parent else None
        # A sampled span always records its events.
        self.record_events = record_events or context.sampled

        self.start_time_ns = time.time_ns()
        self.end_time_ns: Optional[int] = None

        self.status = SpanStatus.UNSET
        self.status_description: Optional[str] = None

        self._attributes: Dict[str, Any] = dict(attributes or {})
        self._annotations: List[Annotation] = []
        self._ended = False
        self._activation_token = None

    @property
    def sampled(self) -> bool:
        return self.context.sampled

    @property
    def is_recording(self) -> bool:
        return not self._ended and self.record_events

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def attributes(self) -> Dict[str, Any]:
        return self._attributes

    @property
    def annotations(self) -> List[Annotation]:
        """Annotations in the order they were added (read-only copy)."""
        return list(self._annotations)

    @property
    def duration_ns(self) -> Optional[int]:
        """Get span duration in nanoseconds."""
        if self.end_time_ns is None:
            return None
        return self.end_time_ns - self.start_time_ns

    def annotate(self, message: str, attributes: Optional[Dict[str, Any]] = None) -> None:
        """Append a timestamped annotation."""
        if not self.is_recording:
            return
        self._annotations.append(
            Annotation(
                timestamp_ns=time.time_ns(),
                message=message,
                attributes=dict(attributes or {}),
            )
        )

    def set_attribute(self, key: str, value: Any) -> None:
        """Set an attribute on the span."""
        if self._ended:
            return
        self._attributes[key] = value

    def record_exception(self, error: BaseException) -> None:
        """Record an exception annotation and mark the span as failed."""
        if self._ended:
            return
        self.annotate(
            "exception",
            {
                "exception.type": error.__class__.__name__,
                "exception.message": str(error),
                "exception.stacktrace": "".join(
                    traceback.format_exception(error.__class__, error, error.__traceback__)
                ),
            },
        )
        self.set_status(SpanStatus.ERROR, str(error))

    def set_status(self, status: SpanStatus, description: Optional[str] = None) -> None:
        """Set the span status."""
        if self._ended:
            return
        self.status = status
        self.status_description = description

    def end(self) -> None:
        """
        End the span.

        Only the first call has an effect. Span processors are notified after
        the span is finalized; their failures are logged by the provider.
        """
        if self._ended:
            return

        self.end_time_ns = time.time_ns()
        if self.status == SpanStatus.UNSET:
            self.status = SpanStatus.OK
        self._ended = True

        try:
            self.tracer._on_span_end(self)
        except Exception:
            logger.warning("Span end notification failed for %r", self.name, exc_info=True)

    def __repr__(self) -> str:
        return (
            f"Span(name={self.name!r}, span_id={self.context.span_id}, "
            f"sampled={self.sampled}, ended={self._ended})"
        )

    # Context manager support
    def __enter__(self) -> "Span":
        """Enter context manager: the span becomes the current span."""
        self._activation_token = span_context.push_span(self)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        """Exit context manager: end the span and restore the previous one."""
        try:
            if exc:
                try:
                    self.record_exception(exc)
                except Exception:
                    logger.warning("Failed to record exception on span %r", self.name, exc_info=True)
            self.end()
        finally:
            if self._activation_token:
                span_context.pop_span(self._activation_token)
                self._activation_token = None
        return False
