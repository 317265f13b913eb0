"""
csv_parser.py - Parsing a 20-column synthetic CSV table

Test table: ``floor(mb * 1 MiB / 250)`` rows (about 250 bytes each) with a
header line and mixed integer, float, string and date columns.  The text is
generated once per configuration and shared by both paths.

Native path: ``pandas.read_csv`` (C tokenizer).
Managed path: ``str.split`` line parser that drops rows with fewer than 20
fields or a non-positive id.

Both return ``[record_count, total_size, avg_value1, parse_time_ms]``.
"""

from __future__ import annotations

import io
import time
from typing import List

import pandas as pd

from nativebench.algorithms.base import AlgorithmDefinition, KernelRunner
from nativebench.core.constants import BYTES_PER_MB, MS_PER_S
from nativebench.core.errors import InputError
from nativebench.core.models import AlgorithmType
from nativebench.validation import DEFAULT_VALIDATORS

BYTES_PER_ROW = 250

COLUMNS = (
    "id", "name", "value1", "value2", "value3", "category", "status", "price",
    "quantity", "date", "score1", "score2", "score3", "priority", "description",
    "weight", "count", "type", "ratio", "flag",
)

_TYPES = ("typeA", "typeB", "typeC")


def check_size(mb) -> None:
    if isinstance(mb, bool) or not isinstance(mb, (int, float)) or not mb > 0:
        raise InputError(f"Table size must be a positive number of MB, got {mb!r}")


def _row(i: int) -> str:
    n = i + 1
    return ",".join((
        str(n), f"Record_{n}", f"{n * 1.5:.3f}", f"{n * 2.3:.3f}", f"{n * 0.7:.3f}",
        str(i % 5 + 1), "active" if i % 2 == 0 else "inactive", f"{n * 12.99:.2f}",
        str(i % 100 + 1), f"2024-{i % 12 + 1:02d}-{i % 28 + 1:02d}",
        f"{n * 0.85:.3f}", f"{n * 1.15:.3f}", f"{n * 0.95:.3f}", str(i % 3 + 1),
        f"Description_{n}", f"{n * 2.5:.3f}", str(i % 50 + 1), _TYPES[i % 3],
        f"{n * 0.123:.4f}", str(i % 2),
    ))


def generate_table(mb: float) -> str:
    check_size(mb)
    rows = int(mb * BYTES_PER_MB // BYTES_PER_ROW)
    lines = [",".join(COLUMNS)]
    lines.extend(_row(i) for i in range(rows))
    return "\n".join(lines) + "\n"


def _summary(count: int, value_total: float, text: str, elapsed_s: float) -> List[float]:
    average = value_total / count if count else 0.0
    return [float(count), float(len(text)), average, elapsed_s * MS_PER_S]


# ---------------------------------------------------------------------------
# Native
# ---------------------------------------------------------------------------

def parse_native(text: str) -> List[float]:
    start = time.perf_counter()
    frame = pd.read_csv(io.StringIO(text), engine="c")
    frame = frame[frame["id"] > 0]
    elapsed = time.perf_counter() - start
    return _summary(len(frame), float(frame["value1"].sum()), text, elapsed)


# ---------------------------------------------------------------------------
# Managed
# ---------------------------------------------------------------------------

def _to_float(field: str) -> float:
    try:
        return float(field)
    except ValueError:
        return 0.0


def _to_int(field: str) -> int:
    try:
        return int(field)
    except ValueError:
        return 0


def parse_rows(text: str) -> List[dict]:
    """Split *text* into records, skipping the header and malformed rows."""
    records = []
    lines = text.split("\n")
    for line in lines[1:]:
        if not line.strip():
            continue
        fields = [f.strip() for f in line.split(",")]
        if len(fields) < len(COLUMNS):
            continue
        record = dict(zip(COLUMNS, fields))
        record["id"] = _to_int(record["id"])
        if record["id"] <= 0:
            continue
        record["value1"] = _to_float(record["value1"])
        records.append(record)
    return records


def parse_managed(text: str) -> List[float]:
    start = time.perf_counter()
    records = parse_rows(text)
    elapsed = time.perf_counter() - start
    total = sum(r["value1"] for r in records)
    return _summary(len(records), total, text, elapsed)


DEFINITION = AlgorithmDefinition(
    key="csv",
    name="CSV Parser",
    algorithm_type=AlgorithmType.STRING,
    iterations=2,
    sizes={"small": 0.1, "medium": 0.5, "large": 1},
    heavy_sizes={"small": 1, "medium": 5, "large": 20},
    native_factory=lambda: KernelRunner(parse_native, "pandas.read_csv"),
    managed_factory=lambda: KernelRunner(parse_managed, "str.split"),
    validator=DEFAULT_VALIDATORS.get("csv"),
    check_input=check_size,
    prepare=generate_table,
)
