import re
from typing import Iterable, NamedTuple, Optional, Sequence

import numpy as np

from pytabula.points.processor import as_point_array

# --- Constants ---
MIN_POINTS = 2
LARGE_SIZE_WARNING = 10000
MAX_POINTS_COUNT = 100000

# Validation result types
EMPTY_FIELD = "EMPTY_FIELD"
INVALID_NUMBER = "INVALID_NUMBER"
NEGATIVE_SIZE = "NEGATIVE_SIZE"
TOO_LARGE_SIZE = "TOO_LARGE_SIZE"
DUPLICATE_X = "DUPLICATE_X"
INVALID_INTERVAL = "INVALID_INTERVAL"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class ValidationResult(NamedTuple):
    is_valid: bool
    type: Optional[str] = None
    message: Optional[str] = None


def parse_leading_int(text: str) -> Optional[int]:
    """Integer at the start of ``text`` (``"12abc"`` -> 12), or None."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def parse_leading_float(text: str) -> Optional[float]:
    """Float at the start of ``text`` (``"1.5x"`` -> 1.5), or None."""
    match = _LEADING_FLOAT.match(text)
    return float(match.group(1)) if match else None


def validate_size(size: str) -> ValidationResult:
    """
    Validate the point-count field of the tabulation form.

    Sizes above LARGE_SIZE_WARNING are accepted but carry a TOO_LARGE_SIZE
    warning message.
    """
    if not size.strip():
        return ValidationResult(False, EMPTY_FIELD, "Please enter the number of points")

    num = parse_leading_int(size)
    if num is None:
        return ValidationResult(False, INVALID_NUMBER, "Number of points must be a number")

    if num < 0:
        return ValidationResult(False, NEGATIVE_SIZE, "Number of points cannot be negative")

    if num < MIN_POINTS:
        return ValidationResult(
            False, INVALID_NUMBER, f"Minimum number of points is {MIN_POINTS}"
        )

    if num > LARGE_SIZE_WARNING:
        return ValidationResult(
            True, TOO_LARGE_SIZE, f"You entered {num} points. This may slow things down."
        )

    return ValidationResult(True)


def validate_points(points: Iterable) -> ValidationResult:
    """
    Validate points as a tabulated function: at least 2, unique and ascending x.
    """
    array = as_point_array(points)
    if len(array) < MIN_POINTS:
        return ValidationResult(
            False, INVALID_NUMBER, f"A function must contain at least {MIN_POINTS} points"
        )

    x = array[:, 0]
    if len(np.unique(x)) != len(x):
        return ValidationResult(False, DUPLICATE_X, "X values must be unique")

    if np.any(np.diff(x) < 0):
        return ValidationResult(
            False, INVALID_NUMBER, "X values must be in ascending order"
        )

    return ValidationResult(True)


def validate_points_count(count: str) -> ValidationResult:
    num = parse_leading_int(count)
    if num is None:
        return ValidationResult(False, INVALID_NUMBER, "Number of points must be a number")

    if num < MIN_POINTS:
        return ValidationResult(False, INVALID_NUMBER, f"At least {MIN_POINTS} points")

    if num > MAX_POINTS_COUNT:
        return ValidationResult(
            False,
            TOO_LARGE_SIZE,
            f"Too many points (maximum {MAX_POINTS_COUNT})",
        )

    return ValidationResult(True)


def validate_interval(left: str, right: str) -> ValidationResult:
    left_num = parse_leading_float(left)
    right_num = parse_leading_float(right)

    if left_num is None or right_num is None:
        return ValidationResult(
            False, INVALID_NUMBER, "Interval bounds must be numbers"
        )

    if left_num >= right_num:
        return ValidationResult(
            False, INVALID_INTERVAL, "Left bound must be less than right bound"
        )

    return ValidationResult(True)


def validate_xy_lengths(x_values: Sequence, y_values: Sequence) -> ValidationResult:
    """Check that x and y value lists pair up into at least MIN_POINTS points."""
    if len(x_values) != len(y_values):
        return ValidationResult(
            False, INVALID_NUMBER, "X and Y value lists must have the same length"
        )
    return validate_points(zip(x_values, y_values))
