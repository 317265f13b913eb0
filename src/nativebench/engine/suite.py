"""
suite.py - Driver that sweeps algorithms and sizes through the engine

The engine is fail-fast per configuration; this layer adds the resilience a
long benchmark session needs:

    * an invalid size is recorded as a failed result without running trials;
    * an implementation failure is logged, recorded as a failed result and
      the sweep moves on to the next size;
    * every failed result is passed to the exporters' optional
      ``on_failure(result, run)`` hook as soon as it is recorded;
    * an algorithm that crashes outright is logged and the batch moves on to
      the next algorithm.

Each algorithm gets its own :class:`ResultAggregator` (one run, one JSON
file).  The environment is captured once per suite and tagged onto every
run.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, Sequence

from nativebench.algorithms.base import AlgorithmDefinition
from nativebench.core.constants import HEAVY_ITERATIONS
from nativebench.core.errors import ExportFailure, ImplementationFailure, InputError
from nativebench.core.memory_probe import MemoryProbe
from nativebench.core.models import BenchmarkResult, BenchmarkRun
from nativebench.engine.aggregator import ResultAggregator, capture_environment
from nativebench.engine.benchmark_engine import BenchmarkEngine

logger = logging.getLogger(__name__)


class SuiteRunner:
    """
    Run complete benchmarks for one or more algorithm definitions.

    Parameters
    ----------
    exporters : sequence
        Export hooks shared by every run (``on_result`` / ``on_run_complete``).
    probe : MemoryProbe, optional
        Shared memory probe; defaults to an enabled one.
    heavy : bool
        Use each definition's ``heavy_sizes`` and ``heavy_iterations`` trials.
    heavy_iterations : int
        Trials per configuration in heavy mode.
    iterations : int, optional
        Override for the per-definition trial count in normal mode.
    environment : dict, optional
        Pre-captured environment metadata (captured lazily otherwise).
    """

    def __init__(
        self,
        exporters: Sequence[Any] = (),
        probe: Optional[MemoryProbe] = None,
        heavy: bool = False,
        heavy_iterations: int = HEAVY_ITERATIONS,
        iterations: Optional[int] = None,
        environment: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.exporters = list(exporters)
        self.probe = probe if probe is not None else MemoryProbe()
        self.heavy = heavy
        self.heavy_iterations = heavy_iterations
        self.iterations = iterations
        self._environment = environment
        self.runs: List[BenchmarkRun] = []
        self.export_errors: List[ExportFailure] = []

    @property
    def environment(self) -> Dict[str, Any]:
        if self._environment is None:
            self._environment = capture_environment()
        return self._environment

    def trial_count(self, definition: AlgorithmDefinition) -> int:
        if self.heavy:
            return self.heavy_iterations
        return self.iterations if self.iterations is not None else definition.iterations

    # ---- one algorithm ---------------------------------------------------

    async def run_algorithm(self, definition: AlgorithmDefinition) -> List[BenchmarkResult]:
        """
        Benchmark every size of *definition*.

        Returns
        -------
        list of BenchmarkResult
            Completed and failed results in size order.
        """
        aggregator = ResultAggregator(algorithm=definition.name)
        aggregator.environment_tag(self.environment)
        engine = BenchmarkEngine(
            definition.native_factory(),
            definition.managed_factory(),
            aggregator=aggregator,
            probe=self.probe,
            exporters=self.exporters,
        )
        trials = self.trial_count(definition)
        sizes = definition.sizes_for(self.heavy)
        logger.info(
            "Benchmarking %s: %d size(s), %d trial(s) each%s",
            definition.name, len(sizes), trials, " [heavy]" if self.heavy else "",
        )

        results: List[BenchmarkResult] = []
        for size_label, raw_input in sizes.items():
            try:
                definition.check_input(raw_input)
                data = definition.prepare(raw_input)
                result = await engine.run_configuration(
                    definition.name, definition.algorithm_type, size_label,
                    data, trials, definition.validator,
                )
            except (InputError, ImplementationFailure) as exc:
                logger.error("%s (%s) failed: %s", definition.name, size_label, exc)
                result = BenchmarkResult.failed_result(
                    definition.name, definition.algorithm_type, size_label, exc
                )
                aggregator.record_failure(result)
                await self._call_hooks("on_failure", result, aggregator.run)
            results.append(result)

        self.export_errors.extend(engine.export_errors)
        await self._complete(aggregator.run)
        self.runs.append(aggregator.run)
        return results

    async def _complete(self, run: BenchmarkRun) -> None:
        await self._call_hooks("on_run_complete", run)

    async def _call_hooks(self, hook_name: str, *args: Any) -> None:
        """Call the optional *hook_name* of every exporter; errors are collected."""
        label = args[0].label if isinstance(args[0], BenchmarkResult) else None
        for exporter in self.exporters:
            hook = getattr(exporter, hook_name, None)
            if hook is None:
                continue
            try:
                outcome = hook(*args)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                name = getattr(exporter, "name", type(exporter).__name__)
                failure = exc if isinstance(exc, ExportFailure) else ExportFailure(name, str(exc), label)
                logger.error("%s export failed: %s", hook_name, failure)
                self.export_errors.append(failure)

    # ---- batches ---------------------------------------------------------

    async def run_all(self, definitions: Iterable[AlgorithmDefinition]) -> Dict[str, List[BenchmarkResult]]:
        """Run every definition in order, continuing past a crashed algorithm."""
        outcome: Dict[str, List[BenchmarkResult]] = OrderedDict()
        for definition in definitions:
            try:
                outcome[definition.key] = await self.run_algorithm(definition)
            except Exception as exc:
                logger.exception("Benchmark for %s crashed", definition.name)
                outcome[definition.key] = [
                    BenchmarkResult.failed_result(definition.name, definition.algorithm_type, "all", exc)
                ]
        return outcome

    def run(self, definitions: Iterable[AlgorithmDefinition]) -> Dict[str, List[BenchmarkResult]]:
        """Synchronous entry point around :meth:`run_all`."""
        return asyncio.run(self.run_all(definitions))
