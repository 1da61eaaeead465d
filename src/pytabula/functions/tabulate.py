from typing import Sequence

import numpy as np
from loguru import logger

from pytabula.functions.mapper import MathFunction

MIN_TABULATED_POINTS = 2


def tabulate(
    function: MathFunction, x_from: float, x_to: float, count: int
) -> np.ndarray:
    """
    Sample a math function at evenly spaced points.

    Parameters
    ----------
    function : MathFunction
        Function to sample.
    x_from : float
        Left interval bound. Swapped with ``x_to`` if larger.
    x_to : float
        Right interval bound.
    count : int
        Number of points, at least 2.

    Returns
    -------
    np.ndarray
        Array of shape (count, 2). When the bounds are equal every point is
        ``(x_from, function(x_from))``.

    Raises
    ------
    ValueError
        If ``count`` is less than 2.
    """
    if count < MIN_TABULATED_POINTS:
        raise ValueError(
            f"count must be at least {MIN_TABULATED_POINTS}, got {count}"
        )

    if x_from > x_to:
        logger.debug(f"Swapping interval bounds: {x_from} <-> {x_to}")
        x_from, x_to = x_to, x_from

    if x_from == x_to:
        x = np.full(count, float(x_from))
    else:
        step = (x_to - x_from) / (count - 1)
        x = x_from + np.arange(count) * step

    y = np.array([float(function(float(xi))) for xi in x], dtype=np.float64)
    logger.info(
        f"Tabulated function on [{x_from}, {x_to}] with {count} points"
    )
    return np.column_stack((x, y))


def from_arrays(x_values: Sequence[float], y_values: Sequence[float]) -> np.ndarray:
    """
    Build a point array from separate x and y value sequences.

    Raises
    ------
    ValueError
        If the sequences differ in length or hold fewer than 2 values.
    """
    x = np.asarray(x_values, dtype=np.float64)
    y = np.asarray(y_values, dtype=np.float64)
    if x.ndim != 1 or y.ndim != 1:
        raise ValueError("x_values and y_values must be one-dimensional")
    if len(x) != len(y):
        raise ValueError(
            f"x_values and y_values must have the same length. Got x={len(x)}, y={len(y)}"
        )
    if len(x) < MIN_TABULATED_POINTS:
        raise ValueError(
            f"At least {MIN_TABULATED_POINTS} points are required, got {len(x)}"
        )
    return np.column_stack((x, y))
