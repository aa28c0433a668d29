"""Tests for sampler policies."""

import pytest

from tabletrace.processors.sampler import (
    AlwaysOnSampler,
    Sampler,
    always_sample,
    probability_sampler,
)
from tabletrace.tracer.span_context import SpanContext

TRIALS = 20000


class TestAlwaysSample:
    def test_every_call_samples(self):
        sampler = always_sample()
        assert isinstance(sampler, AlwaysOnSampler)
        assert all(sampler.should_sample().sampled for _ in range(TRIALS))

    def test_ignores_unsampled_parent(self):
        parent = SpanContext(trace_id="a" * 32, span_id="b" * 16, trace_flags=0)
        assert always_sample().should_sample(parent_context=parent, name="x").sampled is True


class TestProbabilitySampler:
    def test_probability_one_always_samples(self):
        sampler = probability_sampler(1.0)
        assert all(sampler.should_sample().sampled for _ in range(TRIALS))

    def test_probability_zero_never_samples(self):
        sampler = probability_sampler(0.0)
        assert not any(sampler.should_sample().sampled for _ in range(TRIALS))

    @pytest.mark.parametrize("rate", [0.1, 0.5, 0.9])
    def test_observed_rate_close_to_probability(self, rate):
        sampler = probability_sampler(rate)
        hits = sum(sampler.should_sample().sampled for _ in range(TRIALS))
        # Tolerance is several standard deviations at this trial count.
        assert abs(hits / TRIALS - rate) < 0.03

    @pytest.mark.parametrize("rate", [-0.1, 1.5])
    def test_rejects_out_of_range_rate(self, rate):
        with pytest.raises(ValueError):
            Sampler(rate)

    def test_decisions_are_independent_of_call_history(self):
        sampler = probability_sampler(0.5)
        first = [sampler.should_sample().sampled for _ in range(200)]
        second = [sampler.should_sample().sampled for _ in range(200)]
        assert first != second


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
