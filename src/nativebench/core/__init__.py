"""
===============================================================================
NATIVEBENCH - Core Subsystem
===============================================================================
Leaf components shared by the engine, the validators and the exporters.

Modules:
    constants     -- tolerances, epsilon, discrepancy cap, unit conversions
    errors        -- InputError, ImplementationFailure, ExportFailure
    models        -- immutable result records (TrialSample ... BenchmarkRun)
    statistics    -- StatisticsCalculator (nearest-rank summary statistics)
    memory_probe  -- MemoryProbe snapshots and deltas
===============================================================================
"""
