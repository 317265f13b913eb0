"""
json_parser.py - Parsing a JSON array of flat records

Test document: ``floor(mb * 1 MiB / 120)`` records of the form

    {"id": 1, "name": "Record_1", "value": 3.14159, "active": true}

serialised with ``indent=2`` (about 120 bytes per record).  The document is
generated once per configuration and shared by both paths.

Native path: the C-accelerated ``json.loads``.
Managed path: a character-level state machine that understands exactly the
subset the generator emits (an array of flat objects holding strings,
numbers, booleans and null).

Both return ``[record_count, total_size, avg_value, parse_time_ms]``.
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, List

from nativebench.algorithms.base import AlgorithmDefinition, KernelRunner
from nativebench.core.constants import BYTES_PER_MB, MS_PER_S
from nativebench.core.errors import InputError
from nativebench.core.models import AlgorithmType
from nativebench.validation import DEFAULT_VALIDATORS

BYTES_PER_RECORD = 120


def check_size(mb) -> None:
    if isinstance(mb, bool) or not isinstance(mb, (int, float)) or not mb > 0:
        raise InputError(f"Document size must be a positive number of MB, got {mb!r}")


def generate_document(mb: float) -> str:
    check_size(mb)
    count = int(mb * BYTES_PER_MB // BYTES_PER_RECORD)
    records = [
        {"id": i + 1, "name": f"Record_{i + 1}", "value": (i + 1) * 3.14159, "active": i % 2 == 0}
        for i in range(count)
    ]
    return json.dumps(records, indent=2)


def _summary(records: List[Dict[str, Any]], text: str, elapsed_s: float) -> List[float]:
    total = 0.0
    for record in records:
        value = record.get("value")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            total += value
    average = total / len(records) if records else 0.0
    return [float(len(records)), float(len(text)), average, elapsed_s * MS_PER_S]


# ---------------------------------------------------------------------------
# Native
# ---------------------------------------------------------------------------

def parse_native(text: str) -> List[float]:
    start = time.perf_counter()
    records = json.loads(text)
    elapsed = time.perf_counter() - start
    return _summary([r for r in records if isinstance(r, dict)], text, elapsed)


# ---------------------------------------------------------------------------
# Managed
# ---------------------------------------------------------------------------

# Parser states inside an object
_EXPECT_KEY = 0
_EXPECT_COLON = 1
_IN_VALUE = 2


def _scalar(token: str) -> Any:
    if token == "true":
        return True
    if token == "false":
        return False
    if token == "null":
        return None
    try:
        return int(token)
    except ValueError:
        pass
    try:
        return float(token)
    except ValueError:
        raise ValueError(f"Unexpected token {token!r}") from None


def parse_records(text: str) -> List[Dict[str, Any]]:
    """Scan *text* one character at a time and collect the flat objects."""
    records: List[Dict[str, Any]] = []
    record = None
    state = _EXPECT_KEY
    key = ""
    buf: List[str] = []
    string_value = None
    in_string = False
    escape = False

    for c in text:
        if in_string:
            if escape:
                buf.append(c)
                escape = False
            elif c == "\\":
                escape = True
            elif c == '"':
                in_string = False
                if state == _EXPECT_KEY:
                    key = "".join(buf)
                    state = _EXPECT_COLON
                else:
                    string_value = "".join(buf)
                buf = []
            else:
                buf.append(c)
            continue

        if c == '"':
            in_string = True
            buf = []
        elif c == "{":
            record = {}
            state = _EXPECT_KEY
        elif c == ":" and state == _EXPECT_COLON:
            state = _IN_VALUE
            buf = []
            string_value = None
        elif (c == "," or c == "}") and record is not None:
            if state == _IN_VALUE:
                record[key] = string_value if string_value is not None else _scalar("".join(buf))
                state = _EXPECT_KEY
                string_value = None
                buf = []
            if c == "}":
                records.append(record)
                record = None
        elif state == _IN_VALUE and not c.isspace():
            buf.append(c)

    return records


def parse_managed(text: str) -> List[float]:
    start = time.perf_counter()
    records = parse_records(text)
    elapsed = time.perf_counter() - start
    return _summary(records, text, elapsed)


DEFINITION = AlgorithmDefinition(
    key="json",
    name="JSON Parser",
    algorithm_type=AlgorithmType.STRING,
    iterations=2,
    sizes={"small": 0.1, "medium": 0.5, "large": 1},
    heavy_sizes={"small": 0.5, "medium": 1, "large": 5},
    native_factory=lambda: KernelRunner(parse_native, "json (C)"),
    managed_factory=lambda: KernelRunner(parse_managed, "state machine"),
    validator=DEFAULT_VALIDATORS.get("json"),
    check_input=check_size,
    prepare=generate_document,
)
