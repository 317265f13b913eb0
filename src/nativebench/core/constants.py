"""
===============================================================================
NATIVEBENCH - Benchmark Constants
===============================================================================
Central repository for the numeric constants shared by the statistics,
validation and export layers.
===============================================================================
"""

# =============================================================================
# UNIT CONVERSIONS
# =============================================================================
BYTES_PER_MB = 1024.0 * 1024.0
MS_PER_S = 1000.0

# =============================================================================
# VALIDATION
# =============================================================================
# Floor for the relative-error denominator |a-b| / max(|a|, |b|, EPSILON)
RELATIVE_EPSILON = 1e-10

# Only the first few discrepancies are kept on a result
MAX_DISCREPANCIES = 5

# Algorithm-specific relative tolerances
TIGHT_TOLERANCE = 1e-10          # deterministic numeric methods
MATRIX_TOLERANCE = 1e-6          # checksum of a large floating-point sum
SPECTRAL_TOLERANCE = 0.01        # FFT summary statistics
INTEGRATION_TOLERANCE = 0.01     # quadrature results and their error terms
STOCHASTIC_TOLERANCE = 0.15      # randomised optimisation (gradient descent)
PARSER_COUNT_TOLERANCE = 0.1     # parsed record counts
PARSER_VALUE_TOLERANCE = 0.01    # averages over parsed fields

# =============================================================================
# STATISTICS
# =============================================================================
PERCENTILE_95 = 0.95
PERCENTILE_99 = 0.99

# =============================================================================
# SUITE DEFAULTS
# =============================================================================
HEAVY_ITERATIONS = 10
DEFAULT_SEED = 42

# Implementation labels used in results, logs and database rows
NATIVE = "native"
MANAGED = "managed"
