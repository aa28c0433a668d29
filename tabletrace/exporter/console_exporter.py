"""Console exporter for local runs without a collector."""

from __future__ import annotations

import sys
import threading
from typing import Iterable, Optional, TextIO

from tabletrace.tracer.span import Span
from tabletrace.utils.helpers import format_timestamp_ns


class ConsoleExporter:
    """
    Writes each span as one line, followed by one indented line per annotation.

    Child spans are exported before their parents because they end first.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream or sys.stdout
        self._lock = threading.Lock()

    def export(self, spans: Iterable[Span]) -> bool:
        lines = []
        for span in spans:
            line = (
                f"[span] name={span.name} trace_id={span.context.trace_id} "
                f"span_id={span.context.span_id} parent={span.parent_span_id or '-'} "
                f"status={span.status.name} duration_ns={span.duration_ns}"
            )
            if span.attributes:
                line += f" attrs={span.attributes}"
            lines.append(line)
            lines.extend(
                f"    {format_timestamp_ns(a.timestamp_ns)} {a.message}" for a in span.annotations
            )
        with self._lock:
            for line in lines:
                print(line, file=self.stream)
        return True

    def shutdown(self) -> None:
        return None
