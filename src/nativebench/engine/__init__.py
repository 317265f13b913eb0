"""
===============================================================================
NATIVEBENCH - Benchmark Engine
===============================================================================
Modules:
    benchmark_engine  -- BenchmarkEngine (sequential trials, stats, export hooks)
    aggregator        -- ResultAggregator, environment capture
    suite             -- SuiteRunner (size sweeps, failed-result recording)
===============================================================================
"""

from nativebench.engine.aggregator import ResultAggregator, capture_environment
from nativebench.engine.benchmark_engine import BenchmarkEngine
from nativebench.engine.suite import SuiteRunner

__all__ = ["BenchmarkEngine", "ResultAggregator", "SuiteRunner", "capture_environment"]
