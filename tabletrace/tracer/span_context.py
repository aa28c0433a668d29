"""Immutable trace metadata."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SpanContext:
    trace_id: str
    span_id: str
    trace_flags: int = 1  # 1 = sampled, 0 = not sampled

    def is_valid(self) -> bool:
        return bool(self.trace_id and self.span_id)

    @property
    def sampled(self) -> bool:
        return self.trace_flags == 1
