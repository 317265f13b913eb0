"""
gradient_descent.py - Batch gradient descent on the Rosenbrock function

    f(x) = sum_i 100 (x[i+1] - x[i]^2)^2 + (1 - x[i])^2

Global minimum f = 0 at x = (1, ..., 1).  Parameters start at
deterministic pseudo-random values in [-1, 1] drawn from a linear
congruential generator that is reset on every run, so every trial starts
from the same point.  The learning rate shrinks with problem size,
0.001 / sqrt(parameters).

Native path: vectorised numpy gradient.
Managed path: explicit loops over Python lists.

Both return ``[final_cost, convergence_rate, avg_param, first_param]`` with
``convergence_rate = 1 / (1 + final_cost)``.
"""

from __future__ import annotations

import math
from typing import Any, List, Mapping, NamedTuple

import numpy as np

from nativebench.algorithms.base import AlgorithmDefinition, KernelRunner
from nativebench.core.errors import InputError
from nativebench.core.models import AlgorithmType
from nativebench.validation import DEFAULT_VALIDATORS

LCG_SEED = 12345
LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
LCG_MASK = 0x7FFFFFFF


class DescentConfig(NamedTuple):
    iterations: int
    parameters: int


def as_config(value: Any) -> DescentConfig:
    """Accept a ``DescentConfig`` or a mapping with the same keys."""
    if isinstance(value, DescentConfig):
        return value
    if isinstance(value, Mapping):
        try:
            return DescentConfig(int(value["iterations"]), int(value["parameters"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise InputError(f"Invalid gradient descent config {value!r}: {exc}") from exc
    raise InputError(f"Gradient descent input must be a mapping, got {type(value).__name__}")


def check_config(value: Any) -> None:
    config = as_config(value)
    if config.parameters <= 1 or config.iterations <= 0:
        raise InputError(
            f"Need parameters > 1 and iterations > 0, got {config.parameters} / {config.iterations}"
        )


def initial_parameters(n: int) -> List[float]:
    """Deterministic starting point in [-1, 1]."""
    seed = LCG_SEED
    values = []
    for _ in range(n):
        seed = (seed * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MASK
        values.append((seed / LCG_MASK - 0.5) * 2.0)
    return values


def learning_rate(n: int) -> float:
    return 0.001 / math.sqrt(n)


def _summary(cost: float, params: List[float]) -> List[float]:
    return [cost, 1.0 / (1.0 + cost), sum(params) / len(params), params[0]]


# ---------------------------------------------------------------------------
# Native
# ---------------------------------------------------------------------------

def rosenbrock_numpy(x: np.ndarray) -> float:
    return float(np.sum(100.0 * (x[1:] - x[:-1] ** 2) ** 2 + (1.0 - x[:-1]) ** 2))


def descend_numpy(value: Any) -> List[float]:
    check_config(value)
    config = as_config(value)
    rate = learning_rate(config.parameters)
    x = np.array(initial_parameters(config.parameters), dtype=np.float64)
    grad = np.empty_like(x)

    for _ in range(config.iterations):
        head, tail = x[:-1], x[1:]
        coupling = tail - head * head
        grad.fill(0.0)
        grad[:-1] += -400.0 * head * coupling - 2.0 * (1.0 - head)
        grad[1:] += 200.0 * coupling
        x -= rate * grad

    return _summary(rosenbrock_numpy(x), x.tolist())


# ---------------------------------------------------------------------------
# Managed
# ---------------------------------------------------------------------------

def rosenbrock(x: List[float]) -> float:
    total = 0.0
    for i in range(len(x) - 1):
        coupling = x[i + 1] - x[i] * x[i]
        total += 100.0 * coupling * coupling + (1.0 - x[i]) ** 2
    return total


def rosenbrock_gradient(x: List[float]) -> List[float]:
    n = len(x)
    grad = [0.0] * n
    for i in range(n - 1):
        xi, xn = x[i], x[i + 1]
        coupling = xn - xi * xi
        grad[i] += -400.0 * xi * coupling - 2.0 * (1.0 - xi)
        grad[i + 1] += 200.0 * coupling
    return grad


def descend_pure_python(value: Any) -> List[float]:
    check_config(value)
    config = as_config(value)
    rate = learning_rate(config.parameters)
    x = initial_parameters(config.parameters)

    for _ in range(config.iterations):
        grad = rosenbrock_gradient(x)
        x = [xi - rate * gi for xi, gi in zip(x, grad)]

    return _summary(rosenbrock(x), x)


DEFINITION = AlgorithmDefinition(
    key="gradient",
    name="Gradient Descent",
    algorithm_type=AlgorithmType.MATH,
    iterations=3,
    sizes={
        "small": {"iterations": 100, "parameters": 10},
        "medium": {"iterations": 1000, "parameters": 100},
        "large": {"iterations": 10000, "parameters": 1000},
    },
    heavy_sizes={
        "small": {"iterations": 100, "parameters": 10},
        "medium": {"iterations": 1000, "parameters": 100},
        "large": {"iterations": 10000, "parameters": 1000},
    },
    native_factory=lambda: KernelRunner(descend_numpy, "numpy"),
    managed_factory=lambda: KernelRunner(descend_pure_python, "pure-python"),
    validator=DEFAULT_VALIDATORS.get("gradient"),
    check_input=check_config,
    prepare=as_config,
)
