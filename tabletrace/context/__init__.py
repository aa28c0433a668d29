"""Context utilities for the tracing layer."""

from tabletrace.context.context import annotate, get_current_span, pop_span, push_span

__all__ = [
    "annotate",
    "get_current_span",
    "push_span",
    "pop_span",
]
