"""
===============================================================================
NATIVEBENCH - Result Aggregator Test Suite
===============================================================================
Append-only ordering, the one-shot environment tag, separation of failed
configurations and the captured environment shape.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from nativebench.core.models import (
    UNAVAILABLE,
    AlgorithmType,
    BenchmarkResult,
    TrialSample,
    ValidationOutcome,
)
from nativebench.core.statistics import StatisticsCalculator
from nativebench.engine.aggregator import ResultAggregator, capture_environment, utc_timestamp


def make_result(size="small", native=(1.0, 2.0), managed=(3.0, 6.0)):
    native_stats = StatisticsCalculator.compute(native)
    managed_stats = StatisticsCalculator.compute(managed)
    return BenchmarkResult(
        algorithm="demo",
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


class TestAppend:

    def test_completion_order_kept(self):
        agg = ResultAggregator()
        results = [make_result("a"), make_result("b"), make_result("c")]
        for r in results:
            agg.append(r)
        assert agg.all() == tuple(results)
        assert len(agg) == 3

    def test_duplicates_kept(self):
        agg = ResultAggregator()
        r = make_result()
        agg.append(r)
        agg.append(r)
        assert agg.all() == (r, r)

    def test_failed_results_kept_apart(self):
        agg = ResultAggregator()
        failed = BenchmarkResult.failed_result("demo", "math", "large", RuntimeError("x"))
        agg.record_failure(failed)
        agg.append(make_result())
        assert len(agg) == 1
        assert agg.failures() == (failed,)
        assert failed.validation.discrepancies == ("Test execution failed: x",)

    def test_append_rejects_failed(self):
        failed = BenchmarkResult.failed_result("demo", "math", "large", RuntimeError("x"))
        with pytest.raises(ValueError):
            ResultAggregator().append(failed)

    def test_record_failure_rejects_completed(self):
        with pytest.raises(ValueError):
            ResultAggregator().record_failure(make_result())


class TestEnvironment:

    def test_tag_once(self):
        agg = ResultAggregator()
        agg.environment_tag({"platform": "test"})
        with pytest.raises(RuntimeError):
            agg.environment_tag({"platform": "other"})
        assert agg.environment == {"platform": "test"}

    def test_tag_after_results_rejected(self):
        agg = ResultAggregator()
        agg.append(make_result())
        with pytest.raises(RuntimeError):
            agg.environment_tag({"platform": "late"})

    def test_environment_is_copied(self):
        metadata = {"specs": {"cpus": []}}
        agg = ResultAggregator()
        agg.environment_tag(metadata)
        metadata["specs"]["cpus"].append("x")
        agg.environment["specs"]["cpus"].append("y")
        assert agg.run.environment == {"specs": {"cpus": []}}

    def test_capture_environment_shape(self):
        env = capture_environment()
        specs = env["specs"]
        assert env["platform"]
        assert set(specs) == {"version", "platform", "arch", "cpus", "totalMemory", "freeMemory"}
        assert len(specs["cpus"]) >= 1
        assert set(specs["cpus"][0]) == {"model", "speed", "times"}
        assert set(specs["cpus"][0]["times"]) == {"user", "nice", "sys", "idle", "irq"}
        assert specs["totalMemory"] >= specs["freeMemory"] > 0


class TestRun:

    def test_timestamp_format(self):
        stamp = utc_timestamp()
        assert stamp.endswith("Z")
        assert "T" in stamp and "." in stamp

    def test_run_serialisation(self):
        agg = ResultAggregator(algorithm="Demo", timestamp="2024-01-01T00:00:00.000Z")
        agg.environment_tag({"platform": "test"})
        agg.append(make_result())
        agg.record_failure(BenchmarkResult.failed_result("Demo", "math", "large", RuntimeError("x")))

        data = agg.run.to_dict()
        assert data["timestamp"] == "2024-01-01T00:00:00.000Z"
        assert data["algorithm"] == "Demo"
        assert len(data["results"]) == 1
        assert data["results"][0]["speedup"] == pytest.approx(3.0)
        assert data["failures"][0]["status"] == "failed"
        assert data["failures"][0]["error"] == "x"
