"""
aggregator.py - Run-level collection of benchmark results

A :class:`ResultAggregator` owns one :class:`BenchmarkRun`: the run
timestamp, the environment metadata (attached once, before the first result
and never changed afterwards) and the append-only list of completed results
in completion order.  Results of configurations that did not run are kept in
a separate ``failures`` list so consumers never mistake them for
measurements.
"""

from __future__ import annotations

import copy
import logging
import platform
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import psutil

from nativebench.core.constants import MS_PER_S
from nativebench.core.models import BenchmarkResult, BenchmarkRun

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Environment capture
# ---------------------------------------------------------------------------

def _times_ms(times: Any) -> Dict[str, int]:
    """Cumulative CPU times in milliseconds; missing fields read as zero."""
    def ms(name: str) -> int:
        return int(getattr(times, name, 0.0) * MS_PER_S) if times is not None else 0

    return {"user": ms("user"), "nice": ms("nice"), "sys": ms("system"), "idle": ms("idle"), "irq": ms("irq")}


def _cpu_entries() -> List[Dict[str, Any]]:
    model = platform.processor() or platform.machine() or "unknown"
    try:
        times = psutil.cpu_times(percpu=True)
    except (psutil.Error, OSError) as exc:
        logger.debug("cpu_times unavailable: %s", exc)
        times = []
    try:
        freqs = psutil.cpu_freq(percpu=True) or []
    except (psutil.Error, OSError, NotImplementedError) as exc:
        logger.debug("cpu_freq unavailable: %s", exc)
        freqs = []

    count = psutil.cpu_count(logical=True) or len(times) or 1
    cpus = []
    for i in range(count):
        t = times[i] if i < len(times) else None
        speed = freqs[i].current if i < len(freqs) else (freqs[0].current if freqs else 0.0)
        cpus.append({
            "model": model,
            "speed": int(speed),
            "times": _times_ms(t),
        })
    return cpus


def capture_environment() -> Dict[str, Any]:
    """
    Describe the host the benchmarks run on.

    Returns
    -------
    dict
        ``{platform, specs{version, platform, arch, cpus[], totalMemory,
        freeMemory}}`` with memory in bytes.
    """
    memory = psutil.virtual_memory()
    return {
        "platform": platform.python_implementation(),
        "specs": {
            "version": platform.python_version(),
            "platform": sys.platform,
            "arch": platform.machine(),
            "cpus": _cpu_entries(),
            "totalMemory": int(memory.total),
            "freeMemory": int(memory.available),
        },
    }


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------

class ResultAggregator:
    """
    Append-only store for the results of one run.

    Parameters
    ----------
    algorithm : str
        Name recorded on the run (one algorithm, or ``"all"``).
    timestamp : str, optional
        Run timestamp; defaults to now (UTC).
    """

    def __init__(self, algorithm: str = "all", timestamp: Optional[str] = None) -> None:
        self._run = BenchmarkRun(timestamp=timestamp or utc_timestamp(), algorithm=algorithm)
        self._environment_attached = False

    # ---- environment -----------------------------------------------------

    def environment_tag(self, metadata: Dict[str, Any]) -> None:
        """
        Attach the environment metadata of this run.

        Raises
        ------
        RuntimeError
            If metadata is already attached or results have been recorded.
        """
        if self._environment_attached:
            raise RuntimeError("Environment metadata is already attached to this run")
        if self._run.results or self._run.failures:
            raise RuntimeError("Environment metadata must be attached before the first result")
        self._run.environment = copy.deepcopy(dict(metadata))
        self._environment_attached = True

    @property
    def environment(self) -> Dict[str, Any]:
        return copy.deepcopy(self._run.environment)

    # ---- results ---------------------------------------------------------

    def append(self, result: BenchmarkResult) -> None:
        """Record a completed result.  Duplicates are kept."""
        if result.failed:
            raise ValueError("Failed results belong in record_failure(), not append()")
        self._run.results.append(result)

    def record_failure(self, result: BenchmarkResult) -> None:
        """Record the tagged result of a configuration that did not run."""
        if not result.failed:
            raise ValueError("record_failure() only accepts failed results")
        self._run.failures.append(result)

    def all(self) -> Tuple[BenchmarkResult, ...]:
        return tuple(self._run.results)

    def failures(self) -> Tuple[BenchmarkResult, ...]:
        return tuple(self._run.failures)

    @property
    def run(self) -> BenchmarkRun:
        return self._run

    def __len__(self) -> int:
        return len(self._run.results)
