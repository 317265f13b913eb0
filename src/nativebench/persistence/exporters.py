"""
exporters.py - Export hook that streams results into the results database

The engine calls ``on_result(result, run)`` after every completed
configuration.  The environment row of a run is written lazily with its
first result; each result then becomes one ``test_runs`` row set.  Database
errors surface as :class:`ExportFailure` so the engine logs them and keeps
the measured result.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Dict, Tuple

from nativebench.core.errors import ExportFailure, InputError
from nativebench.core.models import BenchmarkResult, BenchmarkRun
from nativebench.persistence.results_db import ResultsDatabase

logger = logging.getLogger(__name__)


class DatabaseExporter:
    """Adapter from the engine's export hooks to :class:`ResultsDatabase`."""

    name = "database"

    def __init__(self, database: ResultsDatabase) -> None:
        self.database = database
        self._environment_ids: Dict[Tuple[str, str], int] = {}
        self.stored = 0

    def _environment_id(self, run: BenchmarkRun) -> int:
        key = (run.timestamp, run.algorithm)
        if key not in self._environment_ids:
            self._environment_ids[key] = self.database.save_environment({
                "timestamp": run.timestamp,
                "algorithm": run.algorithm,
                "environment": run.environment,
            })
        return self._environment_ids[key]

    def on_result(self, result: BenchmarkResult, run: BenchmarkRun) -> None:
        try:
            test_run_id = self.database.save_result(self._environment_id(run), result.to_dict())
        except (sqlite3.Error, InputError) as exc:
            raise ExportFailure(self.name, f"{type(exc).__name__}: {exc}", result.label) from exc
        self.stored += 1
        logger.debug("Stored %s as test run %d", result.label, test_run_id)

    def on_run_complete(self, run: BenchmarkRun) -> None:
        logger.info("Database holds %d result(s) from this session", self.stored)
