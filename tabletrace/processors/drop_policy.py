"""Overflow handling strategies for bounded span buffers."""

from typing import Deque

from tabletrace.tracer.span import Span


class DropPolicy:
    """Base policy deciding what happens when a bounded span buffer is full."""

    def handle(self, queue: Deque[Span], span: Span, max_size: int) -> bool:
        """
        Apply the drop policy.

        Returns True if the span was stored, False if it was dropped.
        """
        raise NotImplementedError


class DropOldestPolicy(DropPolicy):
    """Evict the oldest span to make room for the new one."""

    def handle(self, queue: Deque[Span], span: Span, max_size: int) -> bool:
        if max_size <= 0:
            return False
        while len(queue) >= max_size:
            queue.popleft()
        queue.append(span)
        return True


class DropNewestPolicy(DropPolicy):
    """Drop the incoming span if the buffer is full."""

    def handle(self, queue: Deque[Span], span: Span, max_size: int) -> bool:
        if len(queue) < max_size:
            queue.append(span)
            return True
        return False


DEFAULT_DROP_POLICY = DropOldestPolicy()
