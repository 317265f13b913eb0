"""
===============================================================================
NATIVEBENCH - Memory Probe Test Suite
===============================================================================
Tests for memory snapshots and deltas: unavailable propagation, field-wise
subtraction, the disabled probe and tracing lifecycle.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import tracemalloc

import pytest

from nativebench.core.memory_probe import MemoryProbe
from nativebench.core.models import UNAVAILABLE, MemoryDelta, MemorySnapshot


SNAP_A = MemorySnapshot(heap_used=100, heap_total=200, external=50, rss=1000)
SNAP_B = MemorySnapshot(heap_used=160, heap_total=260, external=40, rss=1200)


class TestDelta:
    """MemoryProbe.delta semantics."""

    def test_unavailable_before_propagates(self):
        assert MemoryProbe.delta(UNAVAILABLE, SNAP_B) is UNAVAILABLE

    def test_unavailable_after_propagates(self):
        assert MemoryProbe.delta(SNAP_A, UNAVAILABLE) is UNAVAILABLE

    def test_both_unavailable(self):
        assert MemoryProbe.delta(UNAVAILABLE, UNAVAILABLE) is UNAVAILABLE

    def test_field_wise_subtraction(self):
        d = MemoryProbe.delta(SNAP_A, SNAP_B)
        assert isinstance(d, MemoryDelta)
        assert (d.heap_used, d.heap_total, d.external, d.rss) == (60, 60, -10, 200)

    def test_unavailable_serialises_as_flag(self):
        assert UNAVAILABLE.to_dict() == {"unavailable": True}


class TestProbe:
    """Live snapshots of the test process."""

    def test_disabled_probe_is_unavailable(self):
        probe = MemoryProbe(enabled=False)
        with probe:
            assert probe.snapshot() is UNAVAILABLE

    def test_snapshot_without_tracing_is_unavailable(self):
        if tracemalloc.is_tracing():
            pytest.skip("tracemalloc already active in this interpreter")
        assert MemoryProbe().snapshot() is UNAVAILABLE

    def test_enabled_snapshot_reports_counters(self):
        with MemoryProbe() as probe:
            snap = probe.snapshot()
        assert isinstance(snap, MemorySnapshot)
        assert snap.rss > 0
        assert snap.heap_total >= snap.heap_used >= 0
        assert snap.external == snap.rss - snap.heap_used

    def test_allocation_shows_in_delta(self):
        with MemoryProbe() as probe:
            before = probe.snapshot()
            block = bytearray(5 * 1024 * 1024)
            after = probe.snapshot()
            del block
        delta = MemoryProbe.delta(before, after)
        assert delta.heap_used >= 5 * 1024 * 1024

    def test_tracing_restored_after_context(self):
        was_tracing = tracemalloc.is_tracing()
        with MemoryProbe():
            assert tracemalloc.is_tracing()
        assert tracemalloc.is_tracing() == was_tracing

    def test_reset_peak_tracks_single_call(self):
        with MemoryProbe() as probe:
            big = bytearray(8 * 1024 * 1024)
            del big
            probe.reset_peak()
            snap = probe.snapshot()
        assert snap.heap_total < 8 * 1024 * 1024 + snap.heap_used
