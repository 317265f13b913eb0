"""
json_exporter.py - Incremental JSON result files

Layout::

    <results_dir>/<algorithm-slug>/<algorithm-slug>-benchmark-<timestamp>.json

The file of a run is rewritten after every completed or failed result and
once more when the run finishes, so an interrupted session still leaves
every result measured so far on disk.  Each write goes to a temporary
file that is then renamed over the target; a crash mid-write never
truncates the previous version.  NaN and infinities are written as ``null``.
"""

from __future__ import annotations

import json
import logging
import math
import os
import re
from pathlib import Path
from typing import Any, Union

from nativebench.core.errors import ExportFailure
from nativebench.core.models import BenchmarkResult, BenchmarkRun

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    """``"Matrix Multiplication"`` -> ``"matrix-multiplication"``."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "benchmark"


def sanitize(value: Any) -> Any:
    """Recursively replace non-finite floats with None."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: sanitize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [sanitize(v) for v in value]
    return value


class JsonFileExporter:
    """Export hook that keeps one JSON file per run up to date."""

    name = "json"

    def __init__(self, results_dir: Union[str, Path]) -> None:
        self.results_dir = Path(results_dir)

    def path_for(self, run: BenchmarkRun) -> Path:
        slug = slugify(run.algorithm)
        stamp = re.sub(r"[:.]", "-", run.timestamp)
        return self.results_dir / slug / f"{slug}-benchmark-{stamp}.json"

    def write(self, run: BenchmarkRun) -> Path:
        """Serialise *run* to its file and return the path.

        Raises
        ------
        ExportFailure
            If the file cannot be written.
        """
        path = self.path_for(run)
        tmp = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(sanitize(run.to_dict()), f, indent=2, allow_nan=False)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as exc:
            raise ExportFailure(self.name, f"{type(exc).__name__}: {exc}") from exc
        return path

    def on_result(self, result: BenchmarkResult, run: BenchmarkRun) -> None:
        path = self.write(run)
        logger.debug("Saved %s to %s", result.label, path)

    def on_failure(self, result: BenchmarkResult, run: BenchmarkRun) -> None:
        path = self.write(run)
        logger.debug("Recorded failure of %s in %s", result.label, path)

    def on_run_complete(self, run: BenchmarkRun) -> None:
        path = self.write(run)
        logger.info(
            "Results saved to %s (%d completed, %d failed)",
            path, len(run.results), len(run.failures),
        )
