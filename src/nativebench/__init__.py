"""
===============================================================================
NATIVEBENCH - Native vs Managed Kernel Benchmark Harness
===============================================================================
Runs paired implementations of six algorithms -- a compiled-kernel ("native")
path built on numpy / scipy / pandas and an equivalent pure-Python
("managed") path -- over repeated trials, measures wall-clock time and memory,
summarises the series statistically, cross-validates the two outputs and
persists the results to JSON files and a SQLite store.

Subpackages:
    core         -- data model, statistics, memory probe, errors, constants
    validation   -- per-algorithm output validators and their registry
    algorithms   -- the six kernel pairs behind a uniform runner contract
    engine       -- benchmark engine, result aggregator, suite driver
    persistence  -- JSON exporter and relational results database
===============================================================================
"""

__version__ = "1.0.0"
