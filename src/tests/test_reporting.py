"""
===============================================================================
NATIVEBENCH - Reporting Test Suite
===============================================================================
Summary frame, charts and Markdown report.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import math

from nativebench.core.models import (
    UNAVAILABLE,
    AlgorithmType,
    BenchmarkResult,
    TrialSample,
    ValidationOutcome,
)
from nativebench.core.statistics import StatisticsCalculator
from nativebench.reporting import SUMMARY_COLUMNS, build_summary_frame, generate_report


def make_result(algorithm, size, native, managed):
    native_stats = StatisticsCalculator.compute(native)
    managed_stats = StatisticsCalculator.compute(managed)
    return BenchmarkResult(
        algorithm=algorithm,
        algorithm_type=AlgorithmType.MATH,
        size=size,
        native_samples=tuple(TrialSample(t, UNAVAILABLE) for t in native),
        managed_samples=tuple(TrialSample(t, UNAVAILABLE) for t in managed),
        native_stats=native_stats,
        managed_stats=managed_stats,
        native_memory_stats=None,
        managed_memory_stats=None,
        speedup=managed_stats.mean / native_stats.mean,
        validation=ValidationOutcome.passed(),
    )


RESULTS = [
    make_result("demo", "small", [1.0, 1.0], [4.0, 4.0]),
    make_result("demo", "large", [2.0, 2.0], [50.0, 50.0]),
    BenchmarkResult.failed_result("demo", "math", "huge", RuntimeError("out of memory")),
]


class TestSummaryFrame:

    def test_columns_and_rows(self):
        frame = build_summary_frame(RESULTS)
        assert list(frame.columns) == SUMMARY_COLUMNS
        assert len(frame) == 3
        assert frame["speedup"].iloc[0] == 4.0
        assert frame["speedup"].iloc[1] == 25.0

    def test_failed_row(self):
        row = build_summary_frame(RESULTS).iloc[2]
        assert row["status"] == "failed"
        assert math.isnan(row["speedup"])
        assert not row["validated"]

    def test_empty(self):
        assert build_summary_frame([]).empty


class TestReport:

    def test_files_written(self, tmp_path):
        report = generate_report(build_summary_frame(RESULTS), str(tmp_path))

        for name in ("summary.csv", "speedup_bar.png", "timing_comparison.png", "report.md"):
            assert (tmp_path / name).exists()
        assert "| demo | small | completed | 2 |" in report
        assert "| demo | huge | failed |" in report
        assert "Largest speedup: **demo (large)** at 25.0x." in report
        assert (tmp_path / "report.md").read_text(encoding="utf-8") == report

    def test_no_charts_when_nothing_completed(self, tmp_path):
        report = generate_report(build_summary_frame(RESULTS[2:]), str(tmp_path))
        assert not (tmp_path / "speedup_bar.png").exists()
        assert "Speedup Chart" not in report
        assert (tmp_path / "report.md").exists()
