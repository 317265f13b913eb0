"""
===============================================================================
NATIVEBENCH - Output Validation
===============================================================================
Per-algorithm strategies that decide whether the native and managed outputs
of one configuration agree, plus the registry that maps algorithm keys to
their validator.
===============================================================================
"""

from nativebench.validation.validators import (
    ElementwiseValidator,
    FieldSpec,
    FieldValidator,
    MatrixValidator,
    OutputValidator,
    ScalarValidator,
    ValidatorRegistry,
    default_registry,
    parser_summary_validator,
    relative_error,
)

DEFAULT_VALIDATORS = default_registry()

__all__ = [
    "DEFAULT_VALIDATORS",
    "ElementwiseValidator",
    "FieldSpec",
    "FieldValidator",
    "MatrixValidator",
    "OutputValidator",
    "ScalarValidator",
    "ValidatorRegistry",
    "default_registry",
    "parser_summary_validator",
    "relative_error",
]
