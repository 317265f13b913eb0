"""
matrix_multiply.py - Dense square matrix product

Native path: numpy ``@`` (dispatches to BLAS dgemm).
Managed path: textbook triple loop over lists of lists, O(n^3) interpreter
steps with a boxed float per element.

Both paths receive the same pair of n x n matrices (values in [0, 100),
drawn from a seeded ``random.Random``) and return the checksum of the
product, the sum of all its elements.  Returning the checksum instead of the
matrix keeps validation cheap and the comparison independent of layout.
"""

from __future__ import annotations

import random
from typing import List, NamedTuple

import numpy as np

from nativebench.algorithms.base import AlgorithmDefinition, KernelRunner
from nativebench.core.constants import DEFAULT_SEED
from nativebench.core.errors import InputError
from nativebench.core.models import AlgorithmType
from nativebench.validation import DEFAULT_VALIDATORS

Matrix = List[List[float]]


class MatrixPair(NamedTuple):
    """Two operands of identical order."""
    a: Matrix
    b: Matrix

    @property
    def order(self) -> int:
        return len(self.a)


def check_order(n) -> None:
    if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
        raise InputError(f"Matrix order must be a positive integer, got {n!r}")


def generate_matrices(n: int, seed: int = DEFAULT_SEED) -> MatrixPair:
    """Two seeded n x n matrices with entries in [0, 100)."""
    check_order(n)
    rng = random.Random(seed)
    a = [[rng.random() * 100.0 for _ in range(n)] for _ in range(n)]
    b = [[rng.random() * 100.0 for _ in range(n)] for _ in range(n)]
    return MatrixPair(a, b)


# ---------------------------------------------------------------------------
# Kernels
# ---------------------------------------------------------------------------

def multiply_numpy(pair: MatrixPair) -> float:
    """Checksum of ``A @ B`` via BLAS.  List-to-array conversion is included."""
    a = np.asarray(pair.a, dtype=np.float64)
    b = np.asarray(pair.b, dtype=np.float64)
    return float((a @ b).sum())


def multiply_naive(pair: MatrixPair) -> float:
    """Checksum of ``A @ B`` via the i-k-j triple loop."""
    a, b = pair.a, pair.b
    n = len(a)
    c = [[0.0] * n for _ in range(n)]
    for i in range(n):
        row_a = a[i]
        row_c = c[i]
        for k in range(n):
            aik = row_a[k]
            row_b = b[k]
            for j in range(n):
                row_c[j] += aik * row_b[j]
    return sum(sum(row) for row in c)


DEFINITION = AlgorithmDefinition(
    key="matrix",
    name="Matrix Multiplication",
    algorithm_type=AlgorithmType.MATH,
    iterations=1,
    sizes={"small": 50, "medium": 200},
    heavy_sizes={"small": 50, "medium": 200, "large": 400},
    native_factory=lambda: KernelRunner(multiply_numpy, "numpy"),
    managed_factory=lambda: KernelRunner(multiply_naive, "pure-python"),
    validator=DEFAULT_VALIDATORS.get("matrix"),
    check_input=check_order,
    prepare=generate_matrices,
)
