#!/usr/bin/env python3
"""
===============================================================================
NATIVEBENCH - COMMAND LINE ENTRY POINT
===============================================================================
Runs the native vs managed benchmark suite and manages its stored results.

USAGE:
    nativebench                          All algorithms, light mode
    nativebench --algorithm fft csv      Selected algorithms only
    nativebench --heavy                  10 trials per configuration, heavy sizes
    nativebench --iterations 3           Override trial count (light mode)
    nativebench --no-db --no-memory      Timing only, JSON files only
    nativebench --report                 Also write charts + report.md
    nativebench --list                   List available algorithms
    nativebench --migrate results/       Import existing JSON files into SQLite
    nativebench --summary                Print per-algorithm speedup summary

OUTPUTS:
    results/<algorithm>/...-benchmark-<timestamp>.json
    results/benchmarks.db
    results/report/                      (with --report)

EXIT CODES:
    0  every configuration completed
    1  at least one configuration failed (or a migration file failed)
    2  invalid arguments or configuration
===============================================================================
"""

from __future__ import annotations

import argparse
import logging
import sqlite3
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from nativebench import __version__
from nativebench.algorithms import ALGORITHMS
from nativebench.config import LoggingConfig, SuiteConfig, load_config
from nativebench.core.errors import InputError
from nativebench.core.memory_probe import MemoryProbe
from nativebench.engine.suite import SuiteRunner
from nativebench.persistence import DatabaseExporter, JsonFileExporter, ResultsDatabase
from nativebench.reporting import build_summary_frame, generate_report

logger = logging.getLogger("nativebench.main")

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_USAGE = 2


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

def setup_logging(config: LoggingConfig) -> None:
    """Console logging plus an optional log file."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.file:
        Path(config.file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.file, mode="a"))
    logging.basicConfig(
        level=getattr(logging, config.level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nativebench",
        description="Benchmark native (numpy/scipy/pandas) vs managed (pure Python) kernels",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Algorithms: " + ", ".join(ALGORITHMS),
    )
    parser.add_argument("--config", type=str, default=None,
                        help="Path to benchmark config YAML")
    parser.add_argument("--algorithm", nargs="+", metavar="KEY", default=None,
                        help="Algorithm key(s) to run (default: all)")
    parser.add_argument("--heavy", action="store_true",
                        help="Heavy mode: heavy sizes, heavy_iterations trials each")
    parser.add_argument("--iterations", type=int, default=None,
                        help="Trials per configuration (light mode)")
    parser.add_argument("--no-db", action="store_true",
                        help="Do not store results in the SQLite database")
    parser.add_argument("--no-json", action="store_true",
                        help="Do not write JSON result files")
    parser.add_argument("--no-memory", action="store_true",
                        help="Disable memory tracing (timing only)")
    parser.add_argument("--list", action="store_true",
                        help="List available algorithms and exit")
    parser.add_argument("--migrate", type=str, default=None, metavar="DIR",
                        help="Import JSON result files from DIR into the database and exit")
    parser.add_argument("--summary", action="store_true",
                        help="Print the stored per-algorithm summary and exit")
    parser.add_argument("--report", action="store_true",
                        help="Write summary.csv, charts and report.md")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_arguments(config: SuiteConfig, args: argparse.Namespace) -> SuiteConfig:
    """Fold command line switches into the loaded configuration."""
    if args.iterations is not None and args.iterations <= 0:
        raise InputError(f"--iterations must be positive, got {args.iterations}")
    if args.heavy:
        config.mode = "heavy"
    if args.no_db:
        config.database.enabled = False
    if args.no_json:
        config.output.save_json = False
    if args.no_memory:
        config.memory.enabled = False
    return config


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def list_algorithms() -> int:
    print(f"{'KEY':<12} {'NAME':<26} {'TYPE':<7} {'TRIALS':>6}  SIZES")
    for key, definition in ALGORITHMS.items():
        sizes = ", ".join(f"{label}={value}" for label, value in definition.sizes.items())
        print(f"{key:<12} {definition.name:<26} {definition.algorithm_type.value:<7} "
              f"{definition.iterations:>6}  {sizes}")
    return EXIT_OK


def migrate(config: SuiteConfig, results_dir: str) -> int:
    config.database.enabled = True
    with ResultsDatabase(config.database) as db:
        outcome = db.save_all_results(results_dir)
        print(f"Migrated {len(outcome['saved'])} file(s) into {config.database.path}")
        for path, error in outcome["failed"].items():
            print(f"  FAILED {path}: {error}")
        for table, rows in db.get_table_sizes().items():
            print(f"  {table:<22} {rows:>8}")
    return EXIT_FAILURES if outcome["failed"] else EXIT_OK


def show_summary(config: SuiteConfig) -> int:
    config.database.enabled = True
    with ResultsDatabase(config.database) as db:
        summary = db.get_algorithm_summary()
    if summary.empty:
        print("No results stored yet.")
    else:
        print(summary.to_string(index=False))
    return EXIT_OK


def run_benchmarks(config: SuiteConfig, keys: Optional[List[str]], iterations: Optional[int],
                   report: bool) -> int:
    definitions = config.definitions(keys)

    exporters = []
    if config.output.save_json:
        exporters.append(JsonFileExporter(config.output.results_dir))
    database = None
    if config.database.enabled:
        try:
            database = ResultsDatabase(config.database)
            exporters.append(DatabaseExporter(database))
        except (sqlite3.Error, OSError) as exc:
            logger.error("Database unavailable, continuing without it: %s", exc)

    suite = SuiteRunner(
        exporters=exporters,
        probe=MemoryProbe(enabled=config.memory.enabled),
        heavy=config.heavy,
        heavy_iterations=config.heavy_iterations,
        iterations=iterations,
    )
    try:
        outcome = suite.run(definitions)
    finally:
        if database is not None:
            database.close()

    results = [r for per_algorithm in outcome.values() for r in per_algorithm]
    frame = build_summary_frame(results)
    print("\n" + "=" * 70)
    print("  SUMMARY")
    print("=" * 70)
    print(frame.to_string(index=False))

    if suite.export_errors:
        print(f"\n  {len(suite.export_errors)} export error(s); see log for details")
    if report:
        generate_report(frame, config.output.report_dir)
        print(f"  Report written to {config.output.report_dir}")

    failed = [r for r in results if r.failed]
    return EXIT_FAILURES if failed else EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run the requested command and return an exit code."""
    args = build_parser().parse_args(argv)

    if args.list:
        return list_algorithms()

    try:
        config = apply_arguments(load_config(args.config), args)
    except InputError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    setup_logging(config.logging)

    if args.migrate:
        return migrate(config, args.migrate)
    if args.summary:
        return show_summary(config)

    print("=" * 70)
    print(f"  NATIVEBENCH {__version__} - native vs managed kernels")
    print(f"  Mode: {config.mode.upper()}   Start: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70)

    start = time.time()
    try:
        code = run_benchmarks(config, args.algorithm, args.iterations, args.report)
    except InputError as exc:
        logger.error("%s", exc)
        return EXIT_USAGE
    print(f"\n  Total wall time: {time.time() - start:.1f} seconds")
    return code


if __name__ == "__main__":
    sys.exit(main())
