"""Context helpers for tracking the active span of the current thread or task."""

import logging
from contextvars import ContextVar, Token
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from tabletrace.tracer.span import Span

logger = logging.getLogger(__name__)

_current_span: ContextVar[Optional["Span"]] = ContextVar("tabletrace_current_span", default=None)


def get_current_span() -> Optional["Span"]:
    """
    Return the currently active span, if any.

    The value is context-local: each thread (and each asyncio task) sees only
    the spans it entered itself.
    """
    return _current_span.get()


def push_span(span: "Span") -> Token:
    """
    Set a span as current.

    Returns:
        Token needed to restore the previous state
    """
    return _current_span.set(span)


def pop_span(token: Token) -> None:
    """
    Restore the previous current span using the provided token.

    Args:
        token: Token returned by push_span()
    """
    _current_span.reset(token)


def annotate(message: str, attributes: Optional[Dict[str, Any]] = None) -> None:
    """Annotate the current span. Never raises; a missing span is a no-op."""
    span = _current_span.get()
    if span is None:
        return
    try:
        span.annotate(message, attributes)
    except Exception:
        logger.warning("Failed to annotate span %r", getattr(span, "name", None), exc_info=True)
