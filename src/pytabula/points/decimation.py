from typing import Tuple

import numpy as np
from loguru import logger
from numba import njit


@njit
def _segment_bounds_numba(n: int, target_count: int) -> np.ndarray:
    """
    Numba-optimized index-ratio segment boundaries.

    Parameters
    ----------
    n : int
        Number of input points.
    target_count : int
        Number of segments to create.

    Returns
    -------
    np.ndarray
        Array of shape (target_count, 2) with [start, end) indices per segment.
    """
    ratio = n / target_count
    bounds = np.empty((target_count, 2), dtype=np.int64)

    for i in range(target_count):
        bounds[i, 0] = int(np.floor(i * ratio))
        bounds[i, 1] = int(np.floor((i + 1) * ratio))

    # Last segment always ends at n, regardless of float rounding in the ratio
    bounds[target_count - 1, 1] = n

    return bounds


@njit
def _compress_mean_numba(
    x: np.ndarray, y: np.ndarray, bounds: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Numba-optimized segment mean compression.

    Parameters
    ----------
    x : np.ndarray
        Input x array.
    y : np.ndarray
        Input y array.
    bounds : np.ndarray
        Segment [start, end) indices, shape (n_segments, 2).

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        Mean x and mean y per segment.
    """
    n_segments = bounds.shape[0]
    x_compressed = np.zeros(n_segments, dtype=np.float64)
    y_compressed = np.zeros(n_segments, dtype=np.float64)

    for i in range(n_segments):
        start_idx = bounds[i, 0]
        end_idx = bounds[i, 1]

        # Calculate mean manually for Numba compatibility
        x_sum = 0.0
        y_sum = 0.0
        for j in range(start_idx, end_idx):
            x_sum += x[j]
            y_sum += y[j]
        count = end_idx - start_idx
        x_compressed[i] = x_sum / count
        y_compressed[i] = y_sum / count

    return x_compressed, y_compressed


def render_stride(n: int, max_to_show: int) -> int:
    """
    Stride used to decimate ``n`` points down to at most ``max_to_show``.

    Parameters
    ----------
    n : int
        Number of stored points.
    max_to_show : int
        Maximum number of points to display.

    Returns
    -------
    int
        ``ceil(n / max_to_show)``, or 1 when no decimation is needed.
    """
    if max_to_show < 1:
        raise ValueError(f"max_to_show must be at least 1, got {max_to_show}")
    if n <= max_to_show:
        return 1
    return -(-n // max_to_show)


def decimate_for_rendering(points: np.ndarray, max_to_show: int = 1000) -> np.ndarray:
    """
    Select every Nth point for display.

    Parameters
    ----------
    points : np.ndarray
        Point array of shape (n, 2).
    max_to_show : int, default=1000
        Maximum number of points to display.

    Returns
    -------
    np.ndarray
        A new array holding points 0, N, 2N, ... where N = ceil(n / max_to_show).
        The input array is returned as a copy when it is already small enough.
    """
    points = np.asarray(points, dtype=np.float64)
    step = render_stride(len(points), max_to_show)
    if step == 1:
        return points.copy()

    decimated = points[::step].copy()
    logger.debug(
        f"Decimated {len(points)} points to {len(decimated)} for rendering (step={step})"
    )
    return decimated


def compress_points(points: np.ndarray, target_count: int) -> np.ndarray:
    """
    Compress a point array to ``target_count`` segment means.

    The array is split into ``target_count`` contiguous segments by index ratio
    (segment ``i`` covers ``[floor(i*r), floor((i+1)*r))`` with ``r = n / target_count``),
    and each segment is replaced by its mean x and mean y.

    Parameters
    ----------
    points : np.ndarray
        Point array of shape (n, 2).
    target_count : int
        Desired number of output points, ``2 <= target_count < n``.

    Returns
    -------
    np.ndarray
        Compressed array of shape (target_count, 2).

    Raises
    ------
    ValueError
        If ``target_count`` is out of range.
    """
    points = np.ascontiguousarray(points, dtype=np.float64)
    n = len(points)
    if target_count < 2 or target_count >= n:
        raise ValueError(
            f"target_count must satisfy 2 <= target_count < {n}, got {target_count}"
        )

    bounds = _segment_bounds_numba(n, int(target_count))
    x_contiguous = np.ascontiguousarray(points[:, 0])
    y_contiguous = np.ascontiguousarray(points[:, 1])
    x_compressed, y_compressed = _compress_mean_numba(
        x_contiguous, y_contiguous, bounds
    )

    logger.debug(
        f"Compressed {n} points to {target_count} (ratio={n / target_count:.3f})"
    )
    return np.column_stack((x_compressed, y_compressed))
