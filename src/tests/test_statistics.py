"""
===============================================================================
NATIVEBENCH - Statistics Test Suite
===============================================================================
Tests for the nearest-rank summary statistics: ordering bounds, the
upper-middle median, truncating percentiles, population standard deviation,
constant series and the empty-input guard.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pytest

from nativebench.core.errors import InputError
from nativebench.core.statistics import StatisticsCalculator


# =============================================================================
# Test: ordering invariants
# =============================================================================

class TestBounds:
    """min <= median <= max and min <= mean <= max for any non-empty input."""

    def test_random_series_respect_bounds(self):
        rng = np.random.default_rng(42)
        for _ in range(200):
            n = int(rng.integers(1, 60))
            samples = list(rng.lognormal(mean=1.0, sigma=1.5, size=n))
            s = StatisticsCalculator.compute(samples)
            assert s.min <= s.median <= s.max
            assert s.min <= s.mean <= s.max
            assert s.min <= s.p95 <= s.max
            assert s.min <= s.p99 <= s.max

    def test_constant_series(self):
        """Repeated value v: zero spread and every location statistic == v."""
        for v in (0.1, 3.0, 1e-9, 12345.678):
            s = StatisticsCalculator.compute([v] * 7)
            assert s.std_dev == 0.0
            assert s.mean == s.median == s.min == s.max == v

    def test_single_sample(self):
        s = StatisticsCalculator.compute([4.2])
        assert s.min == s.max == s.mean == s.median == s.p95 == s.p99 == 4.2
        assert s.std_dev == 0.0


# =============================================================================
# Test: estimator definitions
# =============================================================================

class TestEstimators:
    """Exact index rules of the estimators."""

    def test_median_is_upper_middle_for_even_length(self):
        """[1, 2, 3, 4] -> sorted index 2 -> 3, not 2.5."""
        assert StatisticsCalculator.compute([4.0, 1.0, 3.0, 2.0]).median == 3.0

    def test_median_odd_length(self):
        assert StatisticsCalculator.compute([5.0, 1.0, 3.0]).median == 3.0

    def test_percentiles_truncate(self):
        s = StatisticsCalculator.compute([float(i) for i in range(100)])
        assert s.p95 == 95.0
        assert s.p99 == 99.0

    def test_percentiles_small_series(self):
        """N=20: floor(19.0) = 19 and floor(19.8) = 19, both the maximum."""
        s = StatisticsCalculator.compute([float(i) for i in range(20)])
        assert s.p95 == 19.0
        assert s.p99 == 19.0

    def test_population_standard_deviation(self):
        s = StatisticsCalculator.compute([2, 4, 4, 4, 5, 5, 7, 9])
        assert s.mean == pytest.approx(5.0)
        assert s.std_dev == pytest.approx(2.0)

    def test_input_not_mutated(self):
        samples = [3.0, 1.0, 2.0]
        StatisticsCalculator.compute(samples)
        assert samples == [3.0, 1.0, 2.0]

    def test_order_does_not_change_result(self):
        a = StatisticsCalculator.compute([1.0, 5.0, 2.0, 8.0])
        b = StatisticsCalculator.compute([8.0, 2.0, 5.0, 1.0])
        assert a == b


class TestEmptyInput:

    def test_empty_raises(self):
        with pytest.raises(InputError):
            StatisticsCalculator.compute([])
