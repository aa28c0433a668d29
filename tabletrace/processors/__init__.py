"""Span processors and supporting utilities."""

from tabletrace.processors.batch_processor import BatchSpanProcessor
from tabletrace.processors.drop_policy import (
    DEFAULT_DROP_POLICY,
    DropNewestPolicy,
    DropOldestPolicy,
    DropPolicy,
)
from tabletrace.processors.logging_processor import LoggingSpanProcessor
from tabletrace.processors.sampler import (
    AlwaysOnSampler,
    Sampler,
    SamplingResult,
    always_sample,
    probability_sampler,
)
from tabletrace.processors.span_store import SampledSpanStore, SpanNameSummary, StoreSnapshot

__all__ = [
    "BatchSpanProcessor",
    "DropPolicy",
    "DropOldestPolicy",
    "DropNewestPolicy",
    "DEFAULT_DROP_POLICY",
    "LoggingSpanProcessor",
    "Sampler",
    "AlwaysOnSampler",
    "SamplingResult",
    "always_sample",
    "probability_sampler",
    "SampledSpanStore",
    "SpanNameSummary",
    "StoreSnapshot",
]
