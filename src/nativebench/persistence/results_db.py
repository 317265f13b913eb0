"""
===============================================================================
NATIVEBENCH - Results Database
===============================================================================
SQLite-backed store for benchmark runs: environment and per-CPU info, one
row per completed configuration, timing statistics, per-trial memory samples,
memory statistics and validation outcomes.

Uses sqlite3 for writes and pandas for analysis queries.  The schema is
applied from ``schema.sql`` (shipped next to this module) when the store is
opened; every statement is idempotent.

Writes take the persisted JSON shape (``BenchmarkRun.to_dict()``), so the
same code path stores live results and migrates existing JSON files.  Files
written by older versions of the harness used ``wasm*`` / ``js*`` keys for
the native / managed fields; both spellings are accepted.

Usage:
    from nativebench.config import DatabaseConfig
    from nativebench.persistence.results_db import ResultsDatabase

    with ResultsDatabase(DatabaseConfig(path="results/benchmarks.db")) as db:
        db.save_benchmark_data(run.to_dict())
        print(db.get_algorithm_summary())
===============================================================================
"""

from __future__ import annotations

import json
import logging
import math
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from nativebench.config import DatabaseConfig
from nativebench.core.constants import MANAGED, NATIVE
from nativebench.core.errors import InputError

logger = logging.getLogger(__name__)

_SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"

TABLES = (
    "environment_info",
    "cpu_info",
    "test_runs",
    "performance_stats",
    "memory_measurements",
    "memory_stats",
    "validation_results",
)

# Current key, legacy key
_KEYS = {
    NATIVE: {"times": ("nativeTimes", "wasmTimes"), "stats": ("nativeStats", "wasmStats"),
             "memory": ("nativeMemory", "wasmMemory"),
             "memory_stats": ("nativeMemoryStats", "wasmMemoryStats"), "details": (NATIVE, "wasm")},
    MANAGED: {"times": ("managedTimes", "jsTimes"), "stats": ("managedStats", "jsStats"),
              "memory": ("managedMemory", "jsMemory"),
              "memory_stats": ("managedMemoryStats", "jsMemoryStats"), "details": (MANAGED, "js")},
}


def _pick(data: Dict[str, Any], keys: tuple, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


def _number(value: Any) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


class ResultsDatabase:
    """SQLite interface for benchmark results.

    Parameters
    ----------
    config : DatabaseConfig
        Path of the database file (``":memory:"`` allowed).  The store
        refuses to open when ``config.enabled`` is False.
    schema_path : str or Path, optional
        Override for the SQL schema file.

    Examples
    --------
    >>> db = ResultsDatabase(DatabaseConfig(path="results/benchmarks.db"))
    >>> env_id = db.save_benchmark_data(run_dict)
    >>> db.get_recent_results(10)
    >>> db.close()
    """

    def __init__(
        self,
        config: DatabaseConfig,
        schema_path: Optional[Union[str, Path]] = None,
    ) -> None:
        if not config.enabled:
            raise InputError("Database persistence is disabled in the configuration")
        self.config = config
        self.schema_path = Path(schema_path) if schema_path else _SCHEMA_PATH

        if config.path != ":memory:":
            Path(config.path).parent.mkdir(parents=True, exist_ok=True)

        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(config.path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode = WAL")
        self._conn.execute("PRAGMA foreign_keys = ON")
        self.create_tables()

    # =========================================================================
    # Schema Management
    # =========================================================================

    def create_tables(self) -> None:
        """Apply the schema (tables, indexes, views).

        Raises
        ------
        FileNotFoundError
            If the schema file cannot be found.
        """
        if not self.schema_path.exists():
            raise FileNotFoundError(f"Schema file not found: {self.schema_path}")
        self._conn.executescript(self.schema_path.read_text(encoding="utf-8"))
        self._conn.commit()

    # =========================================================================
    # Row builders (no commit; callers own the transaction)
    # =========================================================================

    def _insert_environment(self, run: Dict[str, Any]) -> int:
        environment = run.get("environment") or {}
        specs = environment.get("specs") or {}
        cpus = specs.get("cpus") or []

        cursor = self._conn.execute(
            "INSERT INTO environment_info (timestamp, algorithm, platform, runtime_version, "
            "platform_os, architecture, total_memory, free_memory, cpu_count) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                run.get("timestamp", ""),
                run.get("algorithm", ""),
                environment.get("platform", "unknown"),
                str(specs.get("version", "unknown")),
                str(specs.get("platform", "unknown")),
                str(specs.get("arch", "unknown")),
                int(specs.get("totalMemory", 0)),
                int(specs.get("freeMemory", 0)),
                len(cpus),
            ),
        )
        env_id = cursor.lastrowid

        rows = []
        for index, cpu in enumerate(cpus):
            times = cpu.get("times") or {}
            rows.append((
                env_id, index, str(cpu.get("model", "unknown")), int(cpu.get("speed", 0)),
                int(times.get("user", 0)), int(times.get("nice", 0)), int(times.get("sys", 0)),
                int(times.get("idle", 0)), int(times.get("irq", 0)),
            ))
        self._conn.executemany(
            "INSERT INTO cpu_info (environment_id, cpu_index, model, speed, user_time, "
            "nice_time, sys_time, idle_time, irq_time) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            rows,
        )
        return env_id

    def _insert_result(self, env_id: int, result: Dict[str, Any]) -> int:
        if result.get("status") == "failed":
            raise InputError(f"Failed result for {result.get('algorithm')} cannot be stored")

        native_times = _pick(result, _KEYS[NATIVE]["times"], [])
        validation = result.get("validationResults") or {}
        cursor = self._conn.execute(
            "INSERT INTO test_runs (environment_id, algorithm, algorithm_type, size_category, "
            "iterations_count, speedup, validation_success) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                env_id,
                result["algorithm"],
                result["type"],
                result["size"],
                int(result.get("iterations", len(native_times))),
                _number(result.get("speedup")),
                1 if validation.get("success") else 0,
            ),
        )
        test_run_id = cursor.lastrowid

        details = result.get("memoryDetails") or {}
        for implementation, keys in _KEYS.items():
            self._insert_performance(test_run_id, implementation, _pick(result, keys["stats"]),
                                     _pick(result, keys["times"], []))
            self._insert_memory(test_run_id, implementation, _pick(result, keys["memory"], []))
            memory_stats = _pick(result, keys["memory_stats"])
            if memory_stats:
                self._insert_memory_stats(test_run_id, implementation, memory_stats,
                                          _pick(details, keys["details"]))

        self._conn.execute(
            "INSERT INTO validation_results (test_run_id, success, discrepancies, error_message) "
            "VALUES (?, ?, ?, ?)",
            (
                test_run_id,
                1 if validation.get("success") else 0,
                json.dumps(list(validation.get("discrepancies", []))),
                result.get("error"),
            ),
        )
        return test_run_id

    def _insert_performance(self, test_run_id: int, implementation: str,
                            stats: Dict[str, Any], times: List[float]) -> None:
        self._conn.execute(
            "INSERT INTO performance_stats (test_run_id, execution_type, min_time, max_time, "
            "mean_time, median_time, std_dev, p95_time, p99_time, individual_times) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                test_run_id, implementation,
                stats["min"], stats["max"], stats["mean"], stats["median"],
                stats["stdDev"], stats["p95"], stats["p99"],
                json.dumps(list(times)),
            ),
        )

    def _insert_memory(self, test_run_id: int, implementation: str, samples: List[Dict[str, Any]]) -> None:
        rows = []
        for index, sample in enumerate(samples):
            if not sample or sample.get("unavailable"):
                rows.append((test_run_id, implementation, index, 0, None, None, None, None))
            else:
                rows.append((
                    test_run_id, implementation, index, 1,
                    int(sample["heapUsed"]), int(sample["heapTotal"]),
                    int(sample["external"]), int(sample["rss"]),
                ))
        self._conn.executemany(
            "INSERT INTO memory_measurements (test_run_id, execution_type, iteration_index, "
            "available, heap_used, heap_total, external_memory, rss) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            rows,
        )

    def _insert_memory_stats(self, test_run_id: int, implementation: str,
                             stats: Dict[str, Any], details: Optional[Dict[str, Any]]) -> None:
        self._conn.execute(
            "INSERT INTO memory_stats (test_run_id, execution_type, min_heap, max_heap, mean_heap, "
            "median_heap, std_dev_heap, p95_heap, p99_heap, memory_details) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                test_run_id, implementation,
                stats["min"], stats["max"], stats["mean"], stats["median"],
                stats["stdDev"], stats["p95"], stats["p99"],
                json.dumps(details) if details is not None else None,
            ),
        )

    # =========================================================================
    # Save Operations
    # =========================================================================

    def save_environment(self, run: Dict[str, Any]) -> int:
        """Store the environment (and CPUs) of a run; returns its row id."""
        with self._conn:
            return self._insert_environment(run)

    def save_result(self, env_id: int, result: Dict[str, Any]) -> int:
        """Store one completed result (``BenchmarkResult.to_dict()`` shape).

        Returns
        -------
        int
            The ``test_runs`` row id.

        Raises
        ------
        InputError
            If *result* is a failed result.
        """
        with self._conn:
            return self._insert_result(env_id, result)

    def save_benchmark_data(self, run: Dict[str, Any]) -> int:
        """Store a whole run in a single transaction.

        Failed results are skipped; anything else that goes wrong rolls the
        entire run back.

        Returns
        -------
        int
            The environment row id of the run.
        """
        with self._conn:
            env_id = self._insert_environment(run)
            stored = 0
            for result in run.get("results", []):
                if result.get("status") == "failed":
                    continue
                self._insert_result(env_id, result)
                stored += 1
        logger.info("Stored %d result(s) of %s run %s", stored, run.get("algorithm"), run.get("timestamp"))
        return env_id

    def save_benchmark_file(self, path: Union[str, Path]) -> int:
        """Load one JSON result file and store it."""
        with open(path, "r", encoding="utf-8") as f:
            run = json.load(f)
        if not isinstance(run, dict) or "results" not in run:
            raise ValueError(f"{path} is not a benchmark result file")
        return self.save_benchmark_data(run)

    def save_all_results(self, results_dir: Union[str, Path]) -> Dict[str, Any]:
        """Migrate every JSON result file below *results_dir*.

        Per-file failures are logged and reported, never raised.

        Returns
        -------
        dict
            ``{"saved": [paths], "failed": {path: error message}}``.
        """
        results_dir = Path(results_dir)
        saved: List[str] = []
        failed: Dict[str, str] = {}
        for path in sorted(results_dir.rglob("*.json")):
            try:
                self.save_benchmark_file(path)
                saved.append(str(path))
            except (OSError, ValueError, KeyError, TypeError, sqlite3.Error) as exc:
                logger.warning("Could not migrate %s: %s", path, exc)
                failed[str(path)] = f"{type(exc).__name__}: {exc}"
        logger.info("Migrated %d file(s), %d failed", len(saved), len(failed))
        return {"saved": saved, "failed": failed}

    # =========================================================================
    # Query Operations
    # =========================================================================

    def get_recent_results(self, limit: int = 20) -> pd.DataFrame:
        """Results of the last seven days, newest first."""
        return pd.read_sql_query(
            "SELECT * FROM recent_benchmarks LIMIT ?", self._conn, params=(int(limit),)
        )

    def get_algorithm_summary(self) -> pd.DataFrame:
        """Speedup statistics per (algorithm, size), incl. population std-dev."""
        df = pd.read_sql_query("SELECT * FROM algorithm_summary", self._conn)
        mean = pd.to_numeric(df["avg_speedup"], errors="coerce")
        mean_sq = pd.to_numeric(df["avg_speedup_sq"], errors="coerce")
        variance = (mean_sq - mean ** 2).clip(lower=0.0)
        df["speedup_std_dev"] = variance ** 0.5
        return df.drop(columns=["avg_speedup_sq"])

    def get_performance_comparison(self, algorithm: Optional[str] = None) -> pd.DataFrame:
        """Native vs managed mean times per stored configuration."""
        query = "SELECT * FROM performance_comparison"
        params: tuple = ()
        if algorithm is not None:
            query += " WHERE algorithm = ?"
            params = (algorithm,)
        return pd.read_sql_query(query + " ORDER BY test_run_id", self._conn, params=params)

    def get_memory_measurements(self, test_run_id: int) -> pd.DataFrame:
        return pd.read_sql_query(
            "SELECT * FROM memory_measurements WHERE test_run_id = ? "
            "ORDER BY execution_type, iteration_index",
            self._conn, params=(test_run_id,),
        )

    def export_to_csv(self, output_dir: Union[str, Path]) -> Dict[str, str]:
        """Export every table to ``<output_dir>/<table>.csv``.

        Returns
        -------
        dict
            Mapping of table name to the absolute path of the exported CSV.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        exported = {}
        for table in TABLES:
            df = pd.read_sql_query(f"SELECT * FROM {table}", self._conn)
            csv_path = output_dir / f"{table}.csv"
            df.to_csv(csv_path, index=False)
            exported[table] = str(csv_path.resolve())
        return exported

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def _count_rows(self, table: str) -> int:
        cursor = self._conn.execute(f"SELECT COUNT(*) FROM {table}")
        return cursor.fetchone()[0]

    def get_table_sizes(self) -> Dict[str, int]:
        """Row count of every table."""
        return {t: self._count_rows(t) for t in TABLES}

    def close(self) -> None:
        if self._conn:
            self._conn.commit()
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "ResultsDatabase":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        total = sum(self.get_table_sizes().values()) if self._conn else 0
        return f"ResultsDatabase(path='{self.config.path}', total_rows={total})"
