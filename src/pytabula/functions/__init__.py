"""
Math-function components for pytabula.

This package maps display names to math functions, samples them into
tabulated point sets, and validates user-entered form values.
"""

from pytabula.functions.mapper import (
    MathFunctionInfo,
    MathFunctionMapper,
    create_default_mapper,
)
from pytabula.functions.tabulate import from_arrays, tabulate
from pytabula.functions.validation import (
    ValidationResult,
    validate_interval,
    validate_points,
    validate_points_count,
    validate_size,
    validate_xy_lengths,
)

__all__ = [
    "MathFunctionInfo",
    "MathFunctionMapper",
    "create_default_mapper",
    "tabulate",
    "from_arrays",
    "ValidationResult",
    "validate_size",
    "validate_points",
    "validate_points_count",
    "validate_interval",
    "validate_xy_lengths",
]
