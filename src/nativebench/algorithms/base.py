"""
base.py - Runner contract and algorithm definitions

The engine never looks inside an algorithm.  It only needs two objects that
satisfy :class:`AlgorithmRunner` (``await runner.run(data) -> output``) and,
optionally, a validator for the pair of outputs.  The bundled kernels are
plain synchronous functions; :class:`KernelRunner` adapts them.

An :class:`AlgorithmDefinition` bundles everything the suite driver needs for
one algorithm: its size table, trial count, the two kernels, the validator
and the input hooks.

    raw input (e.g. matrix order 200)
        |  check_input()   -> InputError on bad sizes, before any trial
        |  prepare()       -> shared data, built once, outside the timing
        v
    native_factory().run(data)   /   managed_factory().run(data)
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol

from nativebench.core.models import AlgorithmType
from nativebench.validation.validators import OutputValidator


class AlgorithmRunner(Protocol):
    """Anything with an awaitable ``run(data) -> output``."""

    async def run(self, data: Any) -> Any:
        ...


class KernelRunner:
    """
    Adapt a synchronous kernel function to :class:`AlgorithmRunner`.

    Parameters
    ----------
    func : callable
        ``func(data) -> output``.  Exceptions propagate unchanged.
    label : str
        Short description used in logs (``"numpy"``, ``"pure-python"``).
    """

    def __init__(self, func: Callable[[Any], Any], label: str) -> None:
        self.func = func
        self.label = label

    async def run(self, data: Any) -> Any:
        return self.func(data)

    def __repr__(self) -> str:
        return f"KernelRunner({self.label})"


def _identity(value: Any) -> Any:
    return value


def _accept_any(value: Any) -> None:
    return None


@dataclass(frozen=True)
class AlgorithmDefinition:
    """
    Everything the suite driver needs to benchmark one algorithm.

    Attributes
    ----------
    key : str
        Registry key and CLI name (``"matrix"``, ``"fft"`` ...).
    name : str
        Human-readable name written into results.
    algorithm_type : AlgorithmType
    iterations : int
        Trials per configuration in normal mode.
    sizes, heavy_sizes : dict
        Ordered ``size label -> raw input`` tables for normal and heavy mode.
    native_factory, managed_factory : callable
        Zero-argument factories returning fresh runners.
    validator : OutputValidator, optional
    check_input : callable
        Raises :class:`InputError` for an invalid raw input.
    prepare : callable
        Turns the raw input into the data handed to both runners.
    """
    key: str
    name: str
    algorithm_type: AlgorithmType
    iterations: int
    sizes: Dict[str, Any]
    heavy_sizes: Dict[str, Any]
    native_factory: Callable[[], AlgorithmRunner]
    managed_factory: Callable[[], AlgorithmRunner]
    validator: Optional[OutputValidator] = None
    check_input: Callable[[Any], None] = field(default=_accept_any)
    prepare: Callable[[Any], Any] = field(default=_identity)

    def sizes_for(self, heavy: bool = False) -> Dict[str, Any]:
        return dict(self.heavy_sizes if heavy else self.sizes)

    def with_overrides(
        self,
        iterations: Optional[int] = None,
        sizes: Optional[Dict[str, Any]] = None,
        heavy_sizes: Optional[Dict[str, Any]] = None,
    ) -> "AlgorithmDefinition":
        """Copy of this definition with the given fields replaced."""
        changes: Dict[str, Any] = {}
        if iterations is not None:
            changes["iterations"] = iterations
        if sizes is not None:
            changes["sizes"] = dict(sizes)
        if heavy_sizes is not None:
            changes["heavy_sizes"] = dict(heavy_sizes)
        return dataclasses.replace(self, **changes)
