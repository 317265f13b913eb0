"""
statistics.py - Summary statistics for timing and memory series

The estimators reproduce the ones used for previously persisted results,
exactly:

    median  -- element at sorted index floor(N/2); for even N this is the
               upper-middle element, *not* the average of the two middle ones.
    p95/p99 -- nearest-rank, truncating: sorted index floor(N*q), clamped to
               the last valid index.
    std_dev -- population standard deviation (divide by N).

All functions are pure and never mutate the caller's sequence.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from nativebench.core.constants import PERCENTILE_95, PERCENTILE_99
from nativebench.core.errors import InputError
from nativebench.core.models import StatSummary


def _rank(n: int, fraction: float) -> int:
    """Truncating nearest-rank index, clamped to ``[0, n-1]``."""
    return min(int(math.floor(n * fraction)), n - 1)


class StatisticsCalculator:
    """Stateless calculator turning a sample series into a :class:`StatSummary`."""

    @staticmethod
    def compute(samples: Sequence[float]) -> StatSummary:
        """
        Summarise a non-empty series of samples.

        Parameters
        ----------
        samples : sequence of float
            Raw measurements in recording order.

        Returns
        -------
        StatSummary

        Raises
        ------
        InputError
            If *samples* is empty.
        """
        values = np.asarray(list(samples), dtype=np.float64)
        n = values.size
        if n == 0:
            raise InputError("Cannot summarise an empty sample series")

        ordered = np.sort(values)  # np.sort returns a copy
        # Rounding in the sum may push the mean a ulp outside [min, max]
        mean = min(max(float(np.mean(values)), float(ordered[0])), float(ordered[-1]))
        std_dev = float(np.sqrt(np.mean((values - mean) ** 2)))

        return StatSummary(
            min=float(ordered[0]),
            max=float(ordered[-1]),
            mean=mean,
            median=float(ordered[n // 2]),
            std_dev=std_dev,
            p95=float(ordered[_rank(n, PERCENTILE_95)]),
            p99=float(ordered[_rank(n, PERCENTILE_99)]),
        )
