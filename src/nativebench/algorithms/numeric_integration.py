"""
numeric_integration.py - Trapezoidal and Simpson quadrature of (x + 1)^2

Integrates f(x) = (x + 1)^2 over [0, 1] (exact value 7/3) with n intervals.
Simpson's rule needs an even interval count and uses the largest even
n' <= n.

Native path: ``scipy.integrate.trapezoid`` / ``scipy.integrate.simpson``
over numpy samples.
Managed path: explicit loops over Python floats.

Both return ``[trapezoidal, simpson, analytical, trapezoidal_error]``.
"""

from __future__ import annotations

import math
from typing import List

import numpy as np
from scipy import integrate

from nativebench.algorithms.base import AlgorithmDefinition, KernelRunner
from nativebench.core.errors import InputError
from nativebench.core.models import AlgorithmType
from nativebench.validation import DEFAULT_VALIDATORS

LOWER, UPPER = 0.0, 1.0


def integrand(x):
    return (x + 1.0) ** 2


def analytical(a: float = LOWER, b: float = UPPER) -> float:
    """Antiderivative (x + 1)^3 / 3 evaluated on [a, b]."""
    return ((b + 1.0) ** 3 - (a + 1.0) ** 3) / 3.0


def check_intervals(n) -> None:
    if isinstance(n, bool) or not isinstance(n, int) or n < 2:
        raise InputError(f"Interval count must be an integer >= 2, got {n!r}")


def _simpson_intervals(n: int) -> int:
    return n if n % 2 == 0 else n - 1


# ---------------------------------------------------------------------------
# Native
# ---------------------------------------------------------------------------

def integrate_scipy(n: int) -> List[float]:
    check_intervals(n)
    x = np.linspace(LOWER, UPPER, n + 1)
    trap = float(integrate.trapezoid(integrand(x), x))

    m = _simpson_intervals(n)
    xs = np.linspace(LOWER, UPPER, m + 1)
    simp = float(integrate.simpson(integrand(xs), x=xs))

    exact = analytical()
    return [trap, simp, exact, abs(trap - exact)]


# ---------------------------------------------------------------------------
# Managed
# ---------------------------------------------------------------------------

def trapezoidal_loop(n: int, a: float = LOWER, b: float = UPPER) -> float:
    h = (b - a) / n
    # fsum keeps the tiny error term comparable to the pairwise sum numpy uses
    interior = math.fsum(integrand(a + i * h) for i in range(1, n))
    return h * (0.5 * (integrand(a) + integrand(b)) + interior)


def simpson_loop(n: int, a: float = LOWER, b: float = UPPER) -> float:
    h = (b - a) / n
    total = integrand(a) + integrand(b)
    for i in range(1, n):
        total += (4.0 if i % 2 else 2.0) * integrand(a + i * h)
    return total * h / 3.0


def integrate_pure_python(n: int) -> List[float]:
    check_intervals(n)
    trap = trapezoidal_loop(n)
    simp = simpson_loop(_simpson_intervals(n))
    exact = analytical()
    return [trap, simp, exact, abs(trap - exact)]


DEFINITION = AlgorithmDefinition(
    key="integration",
    name="Numerical Integration",
    algorithm_type=AlgorithmType.MATH,
    iterations=3,
    sizes={"small": 1000, "medium": 10000, "large": 100000},
    heavy_sizes={"small": 1000, "medium": 10000, "large": 100000},
    native_factory=lambda: KernelRunner(integrate_scipy, "scipy.integrate"),
    managed_factory=lambda: KernelRunner(integrate_pure_python, "pure-python"),
    validator=DEFAULT_VALIDATORS.get("integration"),
    check_input=check_intervals,
)
