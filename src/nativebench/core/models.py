"""
Result data model for the benchmark harness.

Records
-------
MemorySnapshot     -- point-in-time memory counters (bytes).
MemoryDelta        -- "after minus before" of two snapshots.
UNAVAILABLE        -- sentinel used when the host exposes no memory counters.
TrialSample        -- one measured execution (duration + memory delta).
StatSummary        -- min / max / mean / median / std-dev / p95 / p99.
ValidationOutcome  -- success flag plus a bounded list of discrepancies.
BenchmarkResult    -- finished record for one (algorithm, size) configuration.
BenchmarkRun       -- run-level container handed to the exporters.

Every record except :class:`BenchmarkRun` is a frozen dataclass: once a
configuration has been measured its result never changes.  ``to_dict``
produces the persisted JSON shape (camelCase keys) consumed by the JSON
exporter and the relational store.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from nativebench.core.constants import BYTES_PER_MB, MANAGED, NATIVE


def finite_or_none(value: Optional[float]) -> Optional[float]:
    """Return *value* unless it is NaN/inf, in which case return ``None``."""
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class AlgorithmType(str, Enum):
    """Broad family of an algorithm under test."""
    MATH = "math"
    STRING = "string"


class ResultStatus(str, Enum):
    """Whether a configuration produced measurements at all."""
    COMPLETED = "completed"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Memory records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MemorySnapshot:
    """Memory counters of the host process, in bytes.

    Attributes
    ----------
    heap_used : int
        Bytes currently allocated on the traced Python heap.
    heap_total : int
        Peak traced heap since the last peak reset.
    external : int
        Resident memory not accounted for by the traced heap.
    rss : int
        Resident set size of the process.
    """
    heap_used: int
    heap_total: int
    external: int
    rss: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "heapUsed": self.heap_used,
            "heapTotal": self.heap_total,
            "external": self.external,
            "rss": self.rss,
        }


@dataclass(frozen=True)
class MemoryDelta(MemorySnapshot):
    """Field-wise difference ``after - before`` of two snapshots."""


class _Unavailable:
    """Singleton sentinel for hosts without memory introspection."""

    _instance: Optional["_Unavailable"] = None

    def __new__(cls) -> "_Unavailable":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def to_dict(self) -> Dict[str, Any]:
        return {"unavailable": True}

    def __repr__(self) -> str:
        return "UNAVAILABLE"

    def __reduce__(self):
        return (_Unavailable, ())


UNAVAILABLE = _Unavailable()

SnapshotOrUnavailable = Union[MemorySnapshot, _Unavailable]
DeltaOrUnavailable = Union[MemoryDelta, _Unavailable]


def memory_from_dict(data: Dict[str, Any]) -> DeltaOrUnavailable:
    """Inverse of ``MemoryDelta.to_dict`` / ``UNAVAILABLE.to_dict``."""
    if data.get("unavailable"):
        return UNAVAILABLE
    return MemoryDelta(
        heap_used=int(data["heapUsed"]),
        heap_total=int(data["heapTotal"]),
        external=int(data["external"]),
        rss=int(data["rss"]),
    )


# ---------------------------------------------------------------------------
# Measurements and summaries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TrialSample:
    """One timed execution of a single implementation."""
    duration_ms: float
    memory_delta: DeltaOrUnavailable


@dataclass(frozen=True)
class StatSummary:
    """Nearest-rank summary statistics of a numeric series."""
    min: float
    max: float
    mean: float
    median: float
    std_dev: float
    p95: float
    p99: float

    @classmethod
    def zeros(cls) -> "StatSummary":
        """All-zero summary used on failed results."""
        return cls(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatSummary":
        return cls(
            min=data["min"], max=data["max"], mean=data["mean"],
            median=data["median"], std_dev=data["stdDev"],
            p95=data["p95"], p99=data["p99"],
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "median": self.median,
            "stdDev": self.std_dev,
            "p95": self.p95,
            "p99": self.p99,
        }


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of comparing the native and managed outputs of one trial."""
    success: bool
    discrepancies: Tuple[str, ...] = ()

    @classmethod
    def passed(cls) -> "ValidationOutcome":
        return cls(True, ())

    @classmethod
    def from_discrepancies(cls, discrepancies: Sequence[str], limit: int) -> "ValidationOutcome":
        """Build an outcome whose success is ``not discrepancies``."""
        kept = tuple(str(d) for d in discrepancies)[:limit]
        return cls(success=len(kept) == 0, discrepancies=kept)

    @classmethod
    def failure(cls, message: str) -> "ValidationOutcome":
        return cls(False, (message,))

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "discrepancies": list(self.discrepancies)}


# ---------------------------------------------------------------------------
# Result records
# ---------------------------------------------------------------------------

def _mb(value: float) -> float:
    return value / BYTES_PER_MB


def _memory_details(
    samples: Sequence[TrialSample], heap_stats: Optional[StatSummary]
) -> Optional[Dict[str, Any]]:
    """MB-normalised heap/external breakdown for one implementation."""
    deltas = [s.memory_delta for s in samples if isinstance(s.memory_delta, MemoryDelta)]
    if not deltas or heap_stats is None:
        return None
    external = [d.external for d in deltas]
    return {
        "heapUsed": {
            "min": _mb(heap_stats.min),
            "max": _mb(heap_stats.max),
            "mean": _mb(heap_stats.mean),
            "median": _mb(heap_stats.median),
        },
        "external": {
            "min": _mb(min(external)),
            "max": _mb(max(external)),
            "mean": _mb(sum(external) / len(external)),
        },
    }


def _stats_dict(stats: Optional[StatSummary]) -> Optional[Dict[str, float]]:
    return stats.to_dict() if stats is not None else None


@dataclass(frozen=True)
class BenchmarkResult:
    """Finished record for one (algorithm, size) configuration.

    ``speedup`` is ``managed_stats.mean / native_stats.mean``: a value above
    one means the native path was faster.  Memory summaries are ``None`` when
    no trial produced an available memory delta.
    """
    algorithm: str
    algorithm_type: AlgorithmType
    size: str
    native_samples: Tuple[TrialSample, ...]
    managed_samples: Tuple[TrialSample, ...]
    native_stats: StatSummary
    managed_stats: StatSummary
    native_memory_stats: Optional[StatSummary]
    managed_memory_stats: Optional[StatSummary]
    speedup: float
    validation: ValidationOutcome
    status: ResultStatus = ResultStatus.COMPLETED
    error: Optional[str] = None

    # -- projections -------------------------------------------------------

    @property
    def native_timings(self) -> Tuple[float, ...]:
        return tuple(s.duration_ms for s in self.native_samples)

    @property
    def managed_timings(self) -> Tuple[float, ...]:
        return tuple(s.duration_ms for s in self.managed_samples)

    @property
    def native_memory(self) -> Tuple[DeltaOrUnavailable, ...]:
        return tuple(s.memory_delta for s in self.native_samples)

    @property
    def managed_memory(self) -> Tuple[DeltaOrUnavailable, ...]:
        return tuple(s.memory_delta for s in self.managed_samples)

    @property
    def iterations(self) -> int:
        return len(self.native_samples)

    @property
    def failed(self) -> bool:
        return self.status is ResultStatus.FAILED

    @property
    def label(self) -> str:
        return f"{self.algorithm} ({self.size})"

    # -- constructors ------------------------------------------------------

    @classmethod
    def failed_result(
        cls,
        algorithm: str,
        algorithm_type: AlgorithmType,
        size: str,
        error: BaseException,
    ) -> "BenchmarkResult":
        """A clearly tagged record for a configuration that did not run."""
        message = str(error)
        return cls(
            algorithm=algorithm,
            algorithm_type=AlgorithmType(algorithm_type),
            size=size,
            native_samples=(),
            managed_samples=(),
            native_stats=StatSummary.zeros(),
            managed_stats=StatSummary.zeros(),
            native_memory_stats=None,
            managed_memory_stats=None,
            speedup=0.0,
            validation=ValidationOutcome.failure(f"Test execution failed: {message}"),
            status=ResultStatus.FAILED,
            error=message,
        )

    # -- serialisation -----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "algorithm": self.algorithm,
            "type": self.algorithm_type.value,
            "size": self.size,
            "status": self.status.value,
            "iterations": self.iterations,
            "nativeTimes": list(self.native_timings),
            "managedTimes": list(self.managed_timings),
            "nativeMemory": [m.to_dict() for m in self.native_memory],
            "managedMemory": [m.to_dict() for m in self.managed_memory],
            "nativeStats": self.native_stats.to_dict(),
            "managedStats": self.managed_stats.to_dict(),
            "nativeMemoryStats": _stats_dict(self.native_memory_stats),
            "managedMemoryStats": _stats_dict(self.managed_memory_stats),
            "speedup": finite_or_none(self.speedup),
            "validationResults": self.validation.to_dict(),
            "memoryDetails": {
                NATIVE: _memory_details(self.native_samples, self.native_memory_stats),
                MANAGED: _memory_details(self.managed_samples, self.managed_memory_stats),
            },
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class BenchmarkRun:
    """Top-level container: environment metadata plus ordered results.

    ``results`` only ever grows by append.  ``failures`` holds the tagged
    records of configurations that did not complete; they are exported
    alongside but never mixed into ``results``.
    """
    timestamp: str
    algorithm: str
    environment: Dict[str, Any] = field(default_factory=dict)
    results: List[BenchmarkResult] = field(default_factory=list)
    failures: List[BenchmarkResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "algorithm": self.algorithm,
            "environment": self.environment,
            "results": [r.to_dict() for r in self.results],
            "failures": [r.to_dict() for r in self.failures],
        }
