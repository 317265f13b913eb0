"""
validators.py - Output equivalence checks between native and managed runs

Each algorithm compares its two outputs differently, so the check is a
strategy object selected per algorithm from a :class:`ValidatorRegistry`:

    ScalarValidator       -- one number, relative tolerance.
    ElementwiseValidator  -- equal-length numeric vectors, relative tolerance
                             per element (optionally per-index overrides).
    FieldValidator        -- only selected, named fields of a summary vector
                             (parsers: record count and average value).
    MatrixValidator       -- 2-D results: shape match plus a sampled block;
                             scalar checksums fall back to ScalarValidator.

All validators are pure and synchronous.  A missing (``None``) output or an
output of the wrong shape is rejected immediately with a single discrepancy.
The discrepancy list is truncated to ``MAX_DISCREPANCIES`` entries.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional, Sequence

import numpy as np

from nativebench.core.constants import (
    INTEGRATION_TOLERANCE,
    MATRIX_TOLERANCE,
    MAX_DISCREPANCIES,
    PARSER_COUNT_TOLERANCE,
    PARSER_VALUE_TOLERANCE,
    RELATIVE_EPSILON,
    SPECTRAL_TOLERANCE,
    STOCHASTIC_TOLERANCE,
    TIGHT_TOLERANCE,
)
from nativebench.core.errors import InputError
from nativebench.core.models import ValidationOutcome


def relative_error(a: float, b: float, floor: float = RELATIVE_EPSILON) -> float:
    """``|a-b| / max(|a|, |b|, floor)``; NaN when exactly one side is infinite."""
    if a == b:
        return 0.0
    return abs(a - b) / max(abs(a), abs(b), floor)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool)


def _is_vector(value: Any) -> bool:
    if isinstance(value, np.ndarray):
        return value.ndim == 1
    return isinstance(value, (list, tuple))


# ---------------------------------------------------------------------------
# Base strategy
# ---------------------------------------------------------------------------

class OutputValidator(ABC):
    """
    Compare the outputs of the two implementations for one input.

    Subclasses implement :meth:`compare`, returning human-readable
    discrepancies; :meth:`validate` wraps it with the null guard and the
    discrepancy cap.
    """

    def __init__(self, max_discrepancies: int = MAX_DISCREPANCIES) -> None:
        self.max_discrepancies = max_discrepancies

    def validate(self, native_output: Any, managed_output: Any) -> ValidationOutcome:
        if native_output is None or managed_output is None:
            return ValidationOutcome.failure("One or both results are undefined/null")
        discrepancies = self.compare(native_output, managed_output)
        return ValidationOutcome.from_discrepancies(discrepancies, self.max_discrepancies)

    __call__ = validate

    @abstractmethod
    def compare(self, native_output: Any, managed_output: Any) -> List[str]:
        """Return every discrepancy found (may be empty)."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# ---------------------------------------------------------------------------
# Concrete strategies
# ---------------------------------------------------------------------------

class ScalarValidator(OutputValidator):
    """A single number compared by relative error."""

    def __init__(self, tolerance: float = TIGHT_TOLERANCE, **kwargs) -> None:
        super().__init__(**kwargs)
        self.tolerance = tolerance

    def compare(self, native_output: Any, managed_output: Any) -> List[str]:
        if not _is_number(native_output) or not _is_number(managed_output):
            return ["Results are not numeric"]
        a, b = float(native_output), float(managed_output)
        if math.isnan(a) or math.isnan(b):
            return [f"Result contains NaN: native={a}, managed={b}"]
        diff = relative_error(a, b)
        if not diff <= self.tolerance:
            return [f"Result mismatch: native={a}, managed={b}, diff={diff:.3e}"]
        return []

    def __repr__(self) -> str:
        return f"ScalarValidator(tolerance={self.tolerance})"


class ElementwiseValidator(OutputValidator):
    """
    Equal-length numeric vectors compared element by element.

    Parameters
    ----------
    tolerance : float
        Default relative tolerance for every index.
    index_tolerances : mapping of int -> float, optional
        Overrides for specific indices.
    """

    def __init__(
        self,
        tolerance: float = TIGHT_TOLERANCE,
        index_tolerances: Optional[Mapping[int, float]] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.tolerance = tolerance
        self.index_tolerances = dict(index_tolerances or {})

    def compare(self, native_output: Any, managed_output: Any) -> List[str]:
        if not _is_vector(native_output) or not _is_vector(managed_output):
            return ["Results are not arrays"]
        if len(native_output) != len(managed_output):
            return [
                f"Array length mismatch: native={len(native_output)}, "
                f"managed={len(managed_output)}"
            ]

        discrepancies = []
        for i, (a, b) in enumerate(zip(native_output, managed_output)):
            if not _is_number(a) or not _is_number(b):
                discrepancies.append(f"Index {i}: non-numeric value - native={a!r}, managed={b!r}")
                continue
            a, b = float(a), float(b)
            if math.isnan(a) or math.isnan(b):
                discrepancies.append(f"Index {i}: Contains NaN - native={a}, managed={b}")
                continue
            diff = relative_error(a, b)
            if not diff <= self.index_tolerances.get(i, self.tolerance):
                discrepancies.append(
                    f"Index {i}: native={a:.6f}, managed={b:.6f}, diff={diff * 100:.2f}%"
                )
        return discrepancies

    def __repr__(self) -> str:
        return f"ElementwiseValidator(tolerance={self.tolerance})"


class FieldSpec(NamedTuple):
    """A named position inside a summary vector and its tolerance."""
    index: int
    name: str
    tolerance: float
    floor: float = RELATIVE_EPSILON
    decimals: int = 6


class FieldValidator(OutputValidator):
    """Compare only the listed fields of two summary vectors."""

    def __init__(self, fields: Sequence[FieldSpec], **kwargs) -> None:
        super().__init__(**kwargs)
        self.fields = list(fields)

    def compare(self, native_output: Any, managed_output: Any) -> List[str]:
        if not _is_vector(native_output) or not _is_vector(managed_output):
            return ["Results are not arrays"]
        if len(native_output) != len(managed_output):
            return [
                f"Array length mismatch: native={len(native_output)}, "
                f"managed={len(managed_output)}"
            ]

        discrepancies = []
        for spec in self.fields:
            if spec.index >= len(native_output):
                continue
            a, b = float(native_output[spec.index]), float(managed_output[spec.index])
            diff = abs(a - b) / max(abs(a), abs(b), spec.floor)
            if not diff <= spec.tolerance:
                discrepancies.append(
                    f"{spec.name}: native={a:.{spec.decimals}f}, "
                    f"managed={b:.{spec.decimals}f}, diff={diff * 100:.2f}%"
                )
        return discrepancies

    def __repr__(self) -> str:
        names = ", ".join(f.name for f in self.fields)
        return f"FieldValidator({names})"


class MatrixValidator(OutputValidator):
    """
    Matrix products: identical shape and agreement on a sampled block.

    Comparing every element of a large product costs as much as computing
    it, so only the top-left ``sample_size x sample_size`` block is checked.
    Scalar outputs (checksums) are compared with :class:`ScalarValidator`.
    """

    def __init__(self, tolerance: float = MATRIX_TOLERANCE, sample_size: int = 10, **kwargs) -> None:
        super().__init__(**kwargs)
        self.tolerance = tolerance
        self.sample_size = sample_size
        self._scalar = ScalarValidator(tolerance, **kwargs)

    def compare(self, native_output: Any, managed_output: Any) -> List[str]:
        if _is_number(native_output) and _is_number(managed_output):
            return self._scalar.compare(native_output, managed_output)

        try:
            a = np.asarray(native_output, dtype=np.float64)
            b = np.asarray(managed_output, dtype=np.float64)
        except (TypeError, ValueError):
            return ["Results are not matrices"]
        if a.ndim != 2 or b.ndim != 2:
            return ["Results are not matrices"]
        if a.shape != b.shape:
            return [f"Matrix dimensions do not match: native={a.shape}, managed={b.shape}"]

        k = min(self.sample_size, a.shape[0], a.shape[1])
        discrepancies = []
        for i in range(k):
            for j in range(k):
                diff = relative_error(a[i, j], b[i, j])
                if not diff <= self.tolerance:
                    discrepancies.append(
                        f"Mismatch at [{i}][{j}]: native={a[i, j]}, managed={b[i, j]}"
                    )
        return discrepancies

    def __repr__(self) -> str:
        return f"MatrixValidator(tolerance={self.tolerance}, sample_size={self.sample_size})"


def parser_summary_validator() -> FieldValidator:
    """Record count (index 0) within 10% and average value (index 2) within 1%."""
    return FieldValidator([
        FieldSpec(0, "Record count", PARSER_COUNT_TOLERANCE, floor=1.0, decimals=0),
        FieldSpec(2, "Average value", PARSER_VALUE_TOLERANCE),
    ])


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class ValidatorRegistry:
    """Validators keyed by algorithm key (``"matrix"``, ``"fft"``, ...)."""

    def __init__(self) -> None:
        self._validators: Dict[str, OutputValidator] = {}

    def register(self, key: str, validator: OutputValidator) -> None:
        self._validators[key] = validator

    def get(self, key: str) -> OutputValidator:
        try:
            return self._validators[key]
        except KeyError:
            raise InputError(
                f"No validator registered for '{key}'. Known: {sorted(self._validators)}"
            ) from None

    def __contains__(self, key: str) -> bool:
        return key in self._validators

    def __iter__(self) -> Iterator[str]:
        return iter(self._validators)

    def __len__(self) -> int:
        return len(self._validators)


def default_registry() -> ValidatorRegistry:
    """Validators for the six bundled algorithms."""
    registry = ValidatorRegistry()
    registry.register("matrix", MatrixValidator(MATRIX_TOLERANCE))
    registry.register("fft", ElementwiseValidator(SPECTRAL_TOLERANCE))
    registry.register("integration", ElementwiseValidator(INTEGRATION_TOLERANCE))
    registry.register("gradient", ElementwiseValidator(STOCHASTIC_TOLERANCE))
    registry.register("json", parser_summary_validator())
    registry.register("csv", parser_summary_validator())
    return registry
