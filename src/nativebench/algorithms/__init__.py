"""
===============================================================================
NATIVEBENCH - Algorithm Kernels
===============================================================================
Six algorithms, each available as a compiled-kernel ("native") path and a
pure-Python ("managed") path behind the same runner contract.

Modules:
    base                 -- AlgorithmRunner, KernelRunner, AlgorithmDefinition
    matrix_multiply      -- dense n x n product (numpy @ vs triple loop)
    fft                  -- spectrum summary (numpy.fft vs Cooley-Tukey)
    numeric_integration  -- trapezoid / Simpson (scipy.integrate vs loops)
    gradient_descent     -- Rosenbrock descent (vectorised vs loops)
    json_parser          -- json.loads vs character state machine
    csv_parser           -- pandas.read_csv vs str.split

``ALGORITHMS`` is the ordered registry the suite driver iterates.
===============================================================================
"""

from collections import OrderedDict
from typing import Dict

from nativebench.algorithms import (
    csv_parser,
    fft,
    gradient_descent,
    json_parser,
    matrix_multiply,
    numeric_integration,
)
from nativebench.algorithms.base import AlgorithmDefinition, AlgorithmRunner, KernelRunner
from nativebench.core.errors import InputError

ALGORITHMS: Dict[str, AlgorithmDefinition] = OrderedDict(
    (definition.key, definition)
    for definition in (
        matrix_multiply.DEFINITION,
        fft.DEFINITION,
        numeric_integration.DEFINITION,
        gradient_descent.DEFINITION,
        json_parser.DEFINITION,
        csv_parser.DEFINITION,
    )
)


def get_algorithm(key: str) -> AlgorithmDefinition:
    """Look up a definition by key, raising InputError for unknown keys."""
    try:
        return ALGORITHMS[key]
    except KeyError:
        raise InputError(f"Unknown algorithm '{key}'. Available: {', '.join(ALGORITHMS)}") from None


__all__ = ["ALGORITHMS", "AlgorithmDefinition", "AlgorithmRunner", "KernelRunner", "get_algorithm"]
