"""
benchmark_engine.py - Timed, memory-probed trials of two implementations

For one (algorithm, size) configuration the engine runs ``trial_count``
trials strictly in sequence.  Each trial measures the native implementation
to completion, then the managed one:

    reset peak -> snapshot -> t0 -> await run(data) -> t1 -> snapshot

Only trial 0 keeps its outputs, for the validator; later outputs are dropped
as soon as the call returns.  After the loop the timing and heap-used series
are summarised, the speedup ``managed mean / native mean`` is computed and
the finished :class:`BenchmarkResult` is appended to the aggregator and
handed to every export hook.

Failure policy
--------------
* trial_count < 1                  -> InputError before any trial.
* an implementation raises         -> ImplementationFailure, nothing appended.
* the validator raises / misbehaves -> failed ValidationOutcome, run goes on.
* an export hook raises            -> ExportFailure logged and collected in
                                      ``export_errors``; the result is still
                                      returned.
"""

from __future__ import annotations

import inspect
import logging
import math
import time
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from nativebench.algorithms.base import AlgorithmRunner
from nativebench.core.constants import MANAGED, MAX_DISCREPANCIES, MS_PER_S, NATIVE
from nativebench.core.errors import ExportFailure, ImplementationFailure, InputError
from nativebench.core.memory_probe import MemoryProbe
from nativebench.core.models import (
    AlgorithmType,
    BenchmarkResult,
    MemoryDelta,
    StatSummary,
    TrialSample,
    ValidationOutcome,
)
from nativebench.core.statistics import StatisticsCalculator
from nativebench.engine.aggregator import ResultAggregator
from nativebench.validation.validators import OutputValidator

logger = logging.getLogger(__name__)

ValidatorLike = Union[OutputValidator, Callable[[Any, Any], ValidationOutcome]]


def _exporter_name(exporter: Any) -> str:
    return getattr(exporter, "name", type(exporter).__name__)


def memory_stats(samples: Sequence[TrialSample]) -> Optional[StatSummary]:
    """Summary of the heap-used projection of the available deltas, else None."""
    heap = [s.memory_delta.heap_used for s in samples if isinstance(s.memory_delta, MemoryDelta)]
    if not heap:
        return None
    return StatisticsCalculator.compute(heap)


def compute_speedup(native: StatSummary, managed: StatSummary) -> float:
    """``managed.mean / native.mean``; NaN when the native mean is zero."""
    if native.mean == 0:
        return math.nan
    return managed.mean / native.mean


def run_validator(validator: ValidatorLike, native_output: Any, managed_output: Any) -> ValidationOutcome:
    """Call *validator*, turning exceptions and bad return values into failures.

    Discrepancy lists longer than ``MAX_DISCREPANCIES`` are truncated.
    """
    check = getattr(validator, "validate", validator)
    try:
        outcome = check(native_output, managed_output)
    except Exception as exc:
        logger.warning("Validator raised %s: %s", type(exc).__name__, exc)
        return ValidationOutcome.failure(f"Validator error: {type(exc).__name__}: {exc}")
    if not isinstance(outcome, ValidationOutcome):
        logger.warning("Validator returned %r instead of a ValidationOutcome", outcome)
        return ValidationOutcome.failure(
            f"Validator error: expected ValidationOutcome, got {type(outcome).__name__}"
        )
    if len(outcome.discrepancies) > MAX_DISCREPANCIES:
        outcome = ValidationOutcome(outcome.success, tuple(outcome.discrepancies[:MAX_DISCREPANCIES]))
    return outcome


class BenchmarkEngine:
    """
    Orchestrates the trials of one native/managed pair.

    Parameters
    ----------
    native, managed : AlgorithmRunner
        Implementations under test; ``await runner.run(data)``.
    aggregator : ResultAggregator, optional
        Receives every completed result.  A private one is created if omitted.
    probe : MemoryProbe, optional
        Memory snapshots; defaults to an enabled probe.
    exporters : sequence, optional
        Objects with ``on_result(result, run)``; may be sync or async.
    """

    def __init__(
        self,
        native: AlgorithmRunner,
        managed: AlgorithmRunner,
        aggregator: Optional[ResultAggregator] = None,
        probe: Optional[MemoryProbe] = None,
        exporters: Sequence[Any] = (),
    ) -> None:
        self.native = native
        self.managed = managed
        self.aggregator = aggregator if aggregator is not None else ResultAggregator()
        self.probe = probe if probe is not None else MemoryProbe()
        self.exporters = list(exporters)
        self.export_errors: List[ExportFailure] = []

    # ---- single measurement ----------------------------------------------

    async def _measure(
        self, runner: AlgorithmRunner, implementation: str, data: Any, trial: int
    ) -> Tuple[TrialSample, Any]:
        self.probe.reset_peak()
        before = self.probe.snapshot()
        t0 = time.perf_counter()
        try:
            output = await runner.run(data)
        except Exception as exc:
            raise ImplementationFailure(implementation, trial, f"{type(exc).__name__}: {exc}") from exc
        elapsed_ms = (time.perf_counter() - t0) * MS_PER_S
        after = self.probe.snapshot()
        return TrialSample(elapsed_ms, MemoryProbe.delta(before, after)), output

    # ---- configuration ---------------------------------------------------

    async def run_configuration(
        self,
        algorithm: str,
        algorithm_type: Union[AlgorithmType, str],
        size: str,
        data: Any,
        trial_count: int,
        validator: Optional[ValidatorLike] = None,
    ) -> BenchmarkResult:
        """
        Benchmark one configuration and return its finished result.

        Raises
        ------
        InputError
            If *trial_count* is not a positive integer.
        ImplementationFailure
            If either implementation raises during any trial.
        """
        if isinstance(trial_count, bool) or not isinstance(trial_count, int) or trial_count < 1:
            raise InputError(f"trial_count must be a positive integer, got {trial_count!r}")
        algorithm_type = AlgorithmType(algorithm_type)

        logger.info("Running %s (%s) - %d trial(s)", algorithm, size, trial_count)
        native_samples: List[TrialSample] = []
        managed_samples: List[TrialSample] = []
        validation = ValidationOutcome.passed()

        with self.probe:
            for trial in range(trial_count):
                native_sample, native_output = await self._measure(self.native, NATIVE, data, trial)
                managed_sample, managed_output = await self._measure(self.managed, MANAGED, data, trial)
                native_samples.append(native_sample)
                managed_samples.append(managed_sample)
                logger.debug(
                    "Trial %d/%d: native %.3f ms, managed %.3f ms",
                    trial + 1, trial_count, native_sample.duration_ms, managed_sample.duration_ms,
                )

                if trial == 0 and validator is not None:
                    validation = run_validator(validator, native_output, managed_output)
                    if not validation.success:
                        logger.warning(
                            "Validation failed for %s (%s): %s",
                            algorithm, size, "; ".join(validation.discrepancies),
                        )
                del native_output, managed_output

        native_stats = StatisticsCalculator.compute([s.duration_ms for s in native_samples])
        managed_stats = StatisticsCalculator.compute([s.duration_ms for s in managed_samples])
        result = BenchmarkResult(
            algorithm=algorithm,
            algorithm_type=algorithm_type,
            size=size,
            native_samples=tuple(native_samples),
            managed_samples=tuple(managed_samples),
            native_stats=native_stats,
            managed_stats=managed_stats,
            native_memory_stats=memory_stats(native_samples),
            managed_memory_stats=memory_stats(managed_samples),
            speedup=compute_speedup(native_stats, managed_stats),
            validation=validation,
        )
        logger.info(
            "%s: native %.3f ms, managed %.3f ms, speedup %.2fx, validation %s",
            result.label, native_stats.mean, managed_stats.mean, result.speedup,
            "passed" if validation.success else "FAILED",
        )

        self.aggregator.append(result)
        await self._export(result)
        return result

    # ---- export hooks ----------------------------------------------------

    async def _export(self, result: BenchmarkResult) -> None:
        run = self.aggregator.run
        for exporter in self.exporters:
            name = _exporter_name(exporter)
            try:
                outcome = exporter.on_result(result, run)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                failure = exc if isinstance(exc, ExportFailure) else ExportFailure(name, str(exc), result.label)
                logger.error("%s", failure)
                self.export_errors.append(failure)
