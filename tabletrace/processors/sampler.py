"""Sampling decisions for spans."""

import random
from dataclasses import dataclass
from typing import Optional

from tabletrace.tracer.span_context import SpanContext


@dataclass
class SamplingResult:
    sampled: bool


class Sampler:
    """Per-span sampler using a fixed probability."""

    def __init__(self, sample_rate: float = 1.0) -> None:
        if not 0.0 <= sample_rate <= 1.0:
            raise ValueError("sample_rate must be between 0.0 and 1.0")
        self.sample_rate = sample_rate

    def should_sample(
        self,
        parent_context: Optional[SpanContext] = None,
        name: Optional[str] = None,
    ) -> SamplingResult:
        return SamplingResult(sampled=random.random() < self.sample_rate)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(sample_rate={self.sample_rate})"


class AlwaysOnSampler(Sampler):
    """Samples every span. Used for irreversible admin operations."""

    def __init__(self) -> None:
        super().__init__(1.0)

    def should_sample(
        self,
        parent_context: Optional[SpanContext] = None,
        name: Optional[str] = None,
    ) -> SamplingResult:
        return SamplingResult(sampled=True)


def always_sample() -> Sampler:
    return AlwaysOnSampler()


def probability_sampler(probability: float) -> Sampler:
    return Sampler(probability)
