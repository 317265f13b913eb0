"""
===============================================================================
NATIVEBENCH - Suite Driver Test Suite
===============================================================================
The sweep keeps going past invalid sizes, implementation failures and
crashed algorithms, and honours heavy mode and trial overrides.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import json

from nativebench.algorithms.base import AlgorithmDefinition, KernelRunner
from nativebench.core.errors import ExportFailure, InputError
from nativebench.core.memory_probe import MemoryProbe
from nativebench.core.models import AlgorithmType, ResultStatus
from nativebench.engine.suite import SuiteRunner
from nativebench.persistence import JsonFileExporter
from nativebench.validation import ScalarValidator


def check_positive(value):
    if value <= 0:
        raise InputError(f"size must be positive, got {value}")


def native_kernel(value):
    if value == 3:
        raise ValueError("unsupported size")
    return value * 2.0


def definition(key="demo", native=native_kernel, sizes=None, heavy_sizes=None, factory=None):
    return AlgorithmDefinition(
        key=key,
        name=f"{key.title()} Algorithm",
        algorithm_type=AlgorithmType.MATH,
        iterations=2,
        sizes=sizes if sizes is not None else {"ok": 2, "bad": -1, "boom": 3},
        heavy_sizes=heavy_sizes if heavy_sizes is not None else {"big": 5},
        native_factory=factory or (lambda: KernelRunner(native, "native")),
        managed_factory=lambda: KernelRunner(lambda v: v * 2.0, "managed"),
        validator=ScalarValidator(),
        check_input=check_positive,
    )


def make_suite(**kwargs):
    kwargs.setdefault("probe", MemoryProbe(enabled=False))
    kwargs.setdefault("environment", {"platform": "test"})
    return SuiteRunner(**kwargs)


class CompletionRecorder:
    name = "recorder"

    def __init__(self):
        self.results = []
        self.runs = []

    def on_result(self, result, run):
        self.results.append(result)

    def on_run_complete(self, run):
        self.runs.append(run)


class TestSweep:

    def test_failures_recorded_and_sweep_continues(self):
        recorder = CompletionRecorder()
        suite = make_suite(exporters=[recorder])

        outcome = suite.run([definition()])
        results = outcome["demo"]

        assert [r.size for r in results] == ["ok", "bad", "boom"]
        assert [r.status for r in results] == [
            ResultStatus.COMPLETED, ResultStatus.FAILED, ResultStatus.FAILED,
        ]
        assert results[0].validation.success
        assert "positive" in results[1].error
        assert "native implementation failed on trial 0" in results[2].error

        (run,) = suite.runs
        assert run.environment == {"platform": "test"}
        assert run.results == [results[0]]
        assert run.failures == results[1:]
        assert recorder.results == [results[0]]
        assert recorder.runs == [run]

    def test_failures_streamed_before_run_completes(self):
        class FailureRecorder(CompletionRecorder):
            def __init__(self):
                super().__init__()
                self.events = []

            def on_result(self, result, run):
                self.events.append(("result", result.size))

            def on_failure(self, result, run):
                self.events.append(("failure", result.size, len(run.failures)))

            def on_run_complete(self, run):
                self.events.append(("complete",))

        recorder = FailureRecorder()
        make_suite(exporters=[recorder]).run([definition()])

        assert recorder.events == [
            ("result", "ok"),
            ("failure", "bad", 1),
            ("failure", "boom", 2),
            ("complete",),
        ]

    def test_failure_on_disk_before_completion(self, tmp_path):
        exporter = JsonFileExporter(tmp_path)

        class FileReader:
            name = "reader"

            def __init__(self):
                self.data = None

            def on_run_complete(self, run):
                with open(exporter.path_for(run), encoding="utf-8") as f:
                    self.data = json.load(f)

        reader = FileReader()
        make_suite(exporters=[reader, exporter]).run([definition(sizes={"bad": -1})])

        assert [f["size"] for f in reader.data["failures"]] == ["bad"]
        assert reader.data["results"] == []

    def test_trial_count_override(self):
        suite = make_suite(iterations=4)
        results = suite.run([definition(sizes={"ok": 1})])["demo"]
        assert results[0].iterations == 4

    def test_definition_trial_count(self):
        results = make_suite().run([definition(sizes={"ok": 1})])["demo"]
        assert results[0].iterations == 2

    def test_heavy_mode(self):
        suite = make_suite(heavy=True, heavy_iterations=3, iterations=7)
        results = suite.run([definition()])["demo"]
        assert [r.size for r in results] == ["big"]
        assert results[0].iterations == 3


class TestResilience:

    def test_crashed_algorithm_does_not_stop_batch(self):
        def broken_factory():
            raise RuntimeError("cannot build runner")

        suite = make_suite()
        outcome = suite.run([
            definition("first", factory=broken_factory),
            definition("second", sizes={"ok": 1}),
        ])

        assert list(outcome) == ["first", "second"]
        (crashed,) = outcome["first"]
        assert crashed.failed
        assert crashed.size == "all"
        assert "cannot build runner" in crashed.error
        assert outcome["second"][0].status is ResultStatus.COMPLETED

    def test_run_completion_errors_collected(self):
        class BrokenCompletion(CompletionRecorder):
            name = "broken"

            def on_run_complete(self, run):
                raise OSError("read-only file system")

        suite = make_suite(exporters=[BrokenCompletion()])
        results = suite.run([definition(sizes={"ok": 1})])["demo"]

        assert results[0].status is ResultStatus.COMPLETED
        assert len(suite.export_errors) == 1
        assert isinstance(suite.export_errors[0], ExportFailure)

    def test_result_export_errors_forwarded(self):
        class BrokenResult(CompletionRecorder):
            name = "broken"

            def on_result(self, result, run):
                raise OSError("disk full")

        suite = make_suite(exporters=[BrokenResult()])
        suite.run([definition(sizes={"a": 1, "b": 2})])
        assert len(suite.export_errors) == 2
