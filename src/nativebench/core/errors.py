"""
Error taxonomy for the benchmark harness.

InputError            -- invalid configuration, raised before any trial runs.
ImplementationFailure -- a native or managed invocation failed during a trial;
                         aborts the whole configuration.
ExportFailure         -- an export hook failed; logged and collected, never
                         allowed to discard an already measured result.

A validator reporting ``success=False`` is *not* an error: the result is
still complete and carries its discrepancy list.
"""

from __future__ import annotations

from typing import Optional


class InputError(ValueError):
    """Invalid benchmark configuration (trial count, size parameter, ...)."""


class ImplementationFailure(RuntimeError):
    """An algorithm implementation raised during a timed trial.

    Attributes
    ----------
    implementation : str
        ``"native"`` or ``"managed"``.
    trial_index : int
        Zero-based index of the trial that failed.
    """

    def __init__(self, implementation: str, trial_index: int, message: str) -> None:
        super().__init__(
            f"{implementation} implementation failed on trial {trial_index}: {message}"
        )
        self.implementation = implementation
        self.trial_index = trial_index


class ExportFailure(RuntimeError):
    """An export hook (JSON file, database, ...) failed."""

    def __init__(self, exporter: str, message: str, result_label: Optional[str] = None) -> None:
        target = f" for {result_label}" if result_label else ""
        super().__init__(f"Export via {exporter} failed{target}: {message}")
        self.exporter = exporter
        self.result_label = result_label
