"""
memory_probe.py - Point-in-time memory snapshots of the benchmark process

Two sources are combined:

    tracemalloc -- Python-level heap (current and peak traced bytes).  numpy
                   reports its data buffers to tracemalloc as well, so both
                   implementations are measured on the same footing.
    psutil      -- resident set size of the whole process.

``external`` is the part of the RSS that the traced heap does not explain
(interpreter arenas, shared libraries, untraced native buffers).

Tracing allocations slows allocation-heavy code down.  Both implementations
pay that cost equally; a disabled probe (``MemoryProbe(enabled=False)``)
returns ``UNAVAILABLE`` for every snapshot and adds no overhead at all.
"""

from __future__ import annotations

import logging
import tracemalloc
from typing import Optional

import psutil

from nativebench.core.models import (
    UNAVAILABLE,
    DeltaOrUnavailable,
    MemoryDelta,
    MemorySnapshot,
    SnapshotOrUnavailable,
)

logger = logging.getLogger(__name__)


class MemoryProbe:
    """
    Reads host-process memory counters.

    Parameters
    ----------
    enabled : bool
        When False every snapshot is ``UNAVAILABLE``.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._process: Optional[psutil.Process] = None
        self._started_tracing = False
        if enabled:
            try:
                self._process = psutil.Process()
            except psutil.Error as exc:
                logger.warning("Process memory counters unavailable: %s", exc)
                self.enabled = False

    # ---- lifecycle -------------------------------------------------------

    def start(self) -> None:
        """Begin allocation tracing if nobody else already has."""
        if self.enabled and not tracemalloc.is_tracing():
            tracemalloc.start()
            self._started_tracing = True

    def stop(self) -> None:
        """Stop tracing, but only if :meth:`start` turned it on."""
        if self._started_tracing:
            tracemalloc.stop()
            self._started_tracing = False

    def __enter__(self) -> "MemoryProbe":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    # ---- measurement -----------------------------------------------------

    def reset_peak(self) -> None:
        """Restart peak tracking so the next ``heap_total`` covers one call."""
        if self.enabled and tracemalloc.is_tracing():
            tracemalloc.reset_peak()

    def snapshot(self) -> SnapshotOrUnavailable:
        """
        Capture the current counters.

        Returns ``UNAVAILABLE`` instead of raising when the probe is disabled,
        tracing is off, or the OS refuses to report process memory.
        """
        if not self.enabled or self._process is None or not tracemalloc.is_tracing():
            return UNAVAILABLE
        try:
            rss = int(self._process.memory_info().rss)
        except psutil.Error as exc:
            logger.debug("memory_info failed: %s", exc)
            return UNAVAILABLE

        current, peak = tracemalloc.get_traced_memory()
        return MemorySnapshot(
            heap_used=int(current),
            heap_total=int(peak),
            external=rss - int(current),
            rss=rss,
        )

    @staticmethod
    def delta(before: SnapshotOrUnavailable, after: SnapshotOrUnavailable) -> DeltaOrUnavailable:
        """Field-wise ``after - before``; unavailable on either side propagates."""
        if not isinstance(before, MemorySnapshot) or not isinstance(after, MemorySnapshot):
            return UNAVAILABLE
        return MemoryDelta(
            heap_used=after.heap_used - before.heap_used,
            heap_total=after.heap_total - before.heap_total,
            external=after.external - before.external,
            rss=after.rss - before.rss,
        )
