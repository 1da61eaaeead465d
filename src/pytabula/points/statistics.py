from typing import Any, Dict, Optional

import numpy as np
from loguru import logger

# Rough in-memory footprint of one (x, y) pair of doubles
BYTES_PER_POINT = 16


def compute_statistics(points: np.ndarray) -> Optional[Dict[str, Any]]:
    """
    Compute a statistics snapshot for a point array.

    Parameters
    ----------
    points : np.ndarray
        Point array of shape (n, 2).

    Returns
    -------
    Optional[Dict[str, Any]]
        None for an empty array. Otherwise a dictionary with keys
        ``total_points``, ``x_range``, ``y_range`` (each ``{min, max, span}``),
        ``y_statistics`` (``{average, std_dev, sum}``, population std),
        ``duplicates`` (number of repeated x values), ``memory_estimate``
        (bytes) and ``is_sorted`` (x non-decreasing).
    """
    points = np.asarray(points, dtype=np.float64)
    if len(points) == 0:
        return None

    x = points[:, 0]
    y = points[:, 1]

    x_min, x_max = float(np.min(x)), float(np.max(x))
    y_min, y_max = float(np.min(y)), float(np.max(y))
    y_sum = float(np.sum(y))
    y_avg = y_sum / len(y)
    y_std = float(np.sqrt(np.mean((y - y_avg) ** 2)))

    duplicates = int(len(x) - len(np.unique(x)))
    is_sorted = bool(np.all(np.diff(x) >= 0)) if len(x) > 1 else True

    if np.isnan(y_sum):
        logger.debug("y values contain NaN; y statistics will be NaN")

    return {
        "total_points": int(len(points)),
        "x_range": {"min": x_min, "max": x_max, "span": x_max - x_min},
        "y_range": {"min": y_min, "max": y_max, "span": y_max - y_min},
        "y_statistics": {"average": y_avg, "std_dev": y_std, "sum": y_sum},
        "duplicates": duplicates,
        "memory_estimate": int(len(points)) * BYTES_PER_POINT,
        "is_sorted": is_sorted,
    }
