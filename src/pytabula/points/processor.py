import functools
import heapq
import math
from typing import (
    Any,
    Callable,
    Iterable,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import numpy as np
from loguru import logger

from pytabula.points.decimation import compress_points, decimate_for_rendering
from pytabula.points.statistics import compute_statistics

Point = Tuple[float, float]
PointsLike = Union[np.ndarray, Iterable[Union[Sequence[float], Mapping[str, Any]]]]

DEFAULT_MAX_POINTS = 10000
DEFAULT_CHUNK_SIZE = 1000

# Failure kinds carried by OperationResult
LIMIT_EXCEEDED = "limit_exceeded"
OPERATION_FAILURE = "operation_failure"
INVALID_ARGUMENT = "invalid_argument"
BUSY = "busy"


class OperationResult(NamedTuple):
    """Outcome of a processor operation: success, or a failure kind plus message."""

    ok: bool
    kind: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "OperationResult":
        return cls(True)

    @classmethod
    def failure(cls, kind: str, error: str) -> "OperationResult":
        return cls(False, kind, error)


def _coerce_coordinate(value: Any) -> float:
    if value is None:
        return math.nan
    return float(value)


def as_point_array(points: PointsLike) -> np.ndarray:
    """
    Standardize point input to an (n, 2) float64 array.

    Parameters
    ----------
    points : PointsLike
        An (n, 2) array, a sequence of (x, y) pairs, or a sequence of
        ``{"x": ..., "y": ...}`` mappings. Missing (None) coordinates become NaN.

    Returns
    -------
    np.ndarray
        A new array of shape (n, 2).

    Raises
    ------
    ValueError
        If the input cannot be read as a list of points.
    """
    if isinstance(points, np.ndarray):
        if points.size == 0:
            return np.empty((0, 2), dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 2:
            raise ValueError(
                f"Point array must have shape (n, 2), got {points.shape}"
            )
        return np.array(points, dtype=np.float64)

    rows: List[Point] = []
    for i, point in enumerate(points):
        if isinstance(point, Mapping):
            x, y = point.get("x"), point.get("y")
        else:
            try:
                x, y = point
            except (TypeError, ValueError) as e:
                raise ValueError(
                    f"Point {i} must be an (x, y) pair, got {point!r}"
                ) from e
        try:
            rows.append((_coerce_coordinate(x), _coerce_coordinate(y)))
        except (TypeError, ValueError) as e:
            raise ValueError(f"Point {i} has non-numeric coordinates: {point!r}") from e

    if not rows:
        return np.empty((0, 2), dtype=np.float64)
    return np.array(rows, dtype=np.float64)


def _rows(chunk: np.ndarray) -> List[Point]:
    return [(x, y) for x, y in chunk.tolist()]


def _rows_to_array(rows: List[Point]) -> np.ndarray:
    return np.array(rows, dtype=np.float64).reshape(-1, 2)


def _x_key(point: Point) -> float:
    return point[0]


def _dedupe_key(point: Point) -> Tuple[Optional[float], Optional[float]]:
    # NaN never equals itself, so map it to a shared sentinel
    x, y = point
    return (None if math.isnan(x) else x, None if math.isnan(y) else y)


class ChunkedPointProcessor:
    """
    Holds an ordered set of 2-D points and applies bulk operations in chunks.

    Bulk operations (filter, sort, deduplicate, interpolate) walk the point set
    in contiguous chunks of ``chunk_size`` points, reporting progress between
    chunks and handing control to the host through ``yield_callback`` before
    each large chunk. The new point set is installed only once every chunk has
    succeeded; a failure leaves the previous set in place.

    Failures are captured into ``error`` and returned as an ``OperationResult``
    rather than raised. Only one operation may run at a time; an operation
    started while another is in flight is rejected with kind ``"busy"``.
    """

    # Above this size sorting goes through the chunked path and a k-way merge
    SORT_CHUNK_THRESHOLD = 5000
    # Chunks longer than this yield to the host before being processed
    YIELD_THRESHOLD = 500

    def __init__(
        self,
        points: PointsLike = (),
        max_points: int = DEFAULT_MAX_POINTS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        progress_callback: Optional[Callable[[float], None]] = None,
        yield_callback: Optional[Callable[[], None]] = None,
    ):
        """
        Initialise the processor.

        Parameters
        ----------
        points : PointsLike, default=()
            Initial points, see ``as_point_array`` for accepted forms.
        max_points : int, default=10000
            Upper bound on the number of stored points.
        chunk_size : int, default=1000
            Number of points processed per chunk.
        progress_callback : Optional[Callable[[float], None]], default=None
            Called with the progress percentage whenever it changes.
        yield_callback : Optional[Callable[[], None]], default=None
            Called once before processing each chunk longer than
            ``YIELD_THRESHOLD`` points, so the host can service pending work.

        Raises
        ------
        ValueError
            If ``max_points`` or ``chunk_size`` is not a positive integer, or the
            initial points are malformed.
        """
        for name, value in (("max_points", max_points), ("chunk_size", chunk_size)):
            if (
                isinstance(value, bool)
                or not isinstance(value, (int, np.integer))
                or value < 1
            ):
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

        self._max_points = int(max_points)
        self._chunk_size = int(chunk_size)
        self._points = as_point_array(points)
        self._progress_callback = progress_callback
        self._yield_callback = yield_callback

        self._is_processing = False
        self._progress = 0.0
        self._error: Optional[str] = None

        # Oversized initial data is kept, but flagged
        self.check_limit(len(self._points))
        logger.debug(
            f"ChunkedPointProcessor initialised with {len(self._points)} points "
            f"(max_points={self._max_points}, chunk_size={self._chunk_size})"
        )

    # --- State ---

    @property
    def points(self) -> np.ndarray:
        """Copy of the current point set, shape (n, 2)."""
        return self._points.copy()

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def max_points(self) -> int:
        return self._max_points

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def __len__(self) -> int:
        return len(self._points)

    def to_list(self) -> List[Point]:
        """Current point set as a list of (x, y) tuples."""
        return _rows(self._points)

    def clear_error(self) -> None:
        self._error = None

    def reset_progress(self) -> None:
        self._set_progress(0.0)

    # --- Internals ---

    def _set_progress(self, value: float) -> None:
        self._progress = float(value)
        if self._progress_callback is not None:
            self._progress_callback(self._progress)

    def _fail(self, kind: str, message: str) -> OperationResult:
        logger.warning(message)
        self._error = message
        return OperationResult.failure(kind, message)

    def _reject_if_busy(self, description: str) -> Optional[OperationResult]:
        if not self._is_processing:
            return None
        return self._fail(
            BUSY, f"{description} rejected: another operation is in progress"
        )

    def _run_whole(
        self, operation: Callable[[], np.ndarray], description: str
    ) -> OperationResult:
        """Run a single-pass operation and install its result on success."""
        self._is_processing = True
        try:
            new_points = operation()
        except Exception as e:
            self._error = f"{description} failed: {e}"
            logger.exception(self._error)
            return OperationResult.failure(OPERATION_FAILURE, self._error)
        finally:
            self._is_processing = False

        self._points = new_points
        logger.debug(f"{description} complete: {len(new_points)} points")
        return OperationResult.success()

    def _process_in_chunks(
        self,
        operation: Callable[[np.ndarray, int], np.ndarray],
        description: str,
        finalize: Optional[Callable[[List[np.ndarray]], np.ndarray]] = None,
    ) -> OperationResult:
        """
        Apply ``operation`` to each chunk in index order and install the result.

        Parameters
        ----------
        operation : Callable[[np.ndarray, int], np.ndarray]
            Called with each chunk and its index; returns the processed chunk.
        description : str
            Human-readable operation name used in error messages.
        finalize : Optional[Callable[[List[np.ndarray]], np.ndarray]], default=None
            Combines the processed chunks into the new point set. Defaults to
            concatenation in chunk order.

        Returns
        -------
        OperationResult
            Success, or an ``operation_failure`` with the set left unchanged.
        """
        self._is_processing = True
        self._error = None

        source = self._points
        n_chunks = -(-len(source) // self._chunk_size)
        processed: List[np.ndarray] = []

        try:
            self._set_progress(0.0)
            for i, start in enumerate(range(0, len(source), self._chunk_size)):
                chunk = source[start : start + self._chunk_size]
                self._set_progress(i / n_chunks * 100)

                if len(chunk) > self.YIELD_THRESHOLD and self._yield_callback is not None:
                    self._yield_callback()

                processed.append(operation(chunk, i))

            if finalize is not None:
                new_points = finalize(processed)
            elif processed:
                new_points = np.concatenate(processed).reshape(-1, 2)
            else:
                new_points = np.empty((0, 2), dtype=np.float64)
            self._set_progress(100.0)
        except Exception as e:
            self._error = f"{description} failed: {e}"
            logger.exception(f"{self._error} (after {len(processed)} chunks)")
            return OperationResult.failure(OPERATION_FAILURE, self._error)
        finally:
            self._is_processing = False

        self._points = new_points
        logger.debug(
            f"{description} complete: {len(source)} -> {len(new_points)} points in {n_chunks} chunks"
        )
        return OperationResult.success()

    # --- Operations ---

    def check_limit(self, candidate_count: int) -> bool:
        """
        Check a prospective point count against ``max_points``.

        Records an error message when the limit is exceeded. Never changes the
        point set.

        Parameters
        ----------
        candidate_count : int
            Prospective number of points.

        Returns
        -------
        bool
            True if ``candidate_count`` is within the limit.
        """
        if candidate_count > self._max_points:
            self._error = (
                f"Point limit of {self._max_points:,} exceeded. "
                f"Current count: {candidate_count:,}"
            )
            logger.warning(self._error)
            return False
        return True

    def set_points(self, points: PointsLike) -> OperationResult:
        """Replace the whole point set."""
        busy = self._reject_if_busy("Replacing points")
        if busy is not None:
            return busy

        try:
            new_points = as_point_array(points)
        except ValueError as e:
            return self._fail(INVALID_ARGUMENT, f"Replacing points failed: {e}")

        if not self.check_limit(len(new_points)):
            return OperationResult.failure(LIMIT_EXCEEDED, self._error)

        self._points = new_points
        logger.debug(f"Point set replaced: {len(new_points)} points")
        return OperationResult.success()

    def add_points(self, new_points: PointsLike) -> OperationResult:
        """
        Append points to the end of the set.

        Parameters
        ----------
        new_points : PointsLike
            Points to append, in order.

        Returns
        -------
        OperationResult
            ``limit_exceeded`` if the combined size would exceed ``max_points``;
            the set is then unchanged.
        """
        busy = self._reject_if_busy("Adding points")
        if busy is not None:
            return busy

        try:
            additions = as_point_array(new_points)
        except ValueError as e:
            return self._fail(INVALID_ARGUMENT, f"Adding points failed: {e}")

        if not self.check_limit(len(self._points) + len(additions)):
            return OperationResult.failure(LIMIT_EXCEEDED, self._error)

        current = self._points
        return self._run_whole(
            lambda: np.concatenate((current, additions)), "Adding points"
        )

    def filter_points(self, predicate: Callable[[Point], bool]) -> OperationResult:
        """
        Keep only points for which ``predicate((x, y))`` is true.

        Relative order of the kept points is preserved.
        """
        busy = self._reject_if_busy("Point filtering")
        if busy is not None:
            return busy

        def _filter_chunk(chunk: np.ndarray, chunk_index: int) -> np.ndarray:
            mask = np.fromiter(
                (bool(predicate(point)) for point in _rows(chunk)),
                dtype=bool,
                count=len(chunk),
            )
            return chunk[mask]

        return self._process_in_chunks(_filter_chunk, "Point filtering")

    def sort_points(
        self,
        key: Optional[Callable[[Point], Any]] = None,
        cmp: Optional[Callable[[Point, Point], int]] = None,
    ) -> OperationResult:
        """
        Sort the point set.

        Parameters
        ----------
        key : Optional[Callable[[Point], Any]], default=None
            Sort key over an (x, y) tuple. Defaults to x.
        cmp : Optional[Callable[[Point, Point], int]], default=None
            Three-way comparator, used instead of ``key`` when given.

        Returns
        -------
        OperationResult
            Success with a globally sorted (stable) set, or a failure.

        Notes
        -----
        Sets larger than ``SORT_CHUNK_THRESHOLD`` are sorted chunk by chunk and
        the sorted chunks are then merged, so the result is globally sorted
        either way.
        """
        busy = self._reject_if_busy("Point sorting")
        if busy is not None:
            return busy

        if key is not None and cmp is not None:
            return self._fail(
                INVALID_ARGUMENT, "Point sorting failed: pass either key or cmp, not both"
            )
        if cmp is not None:
            key = functools.cmp_to_key(cmp)
        elif key is None:
            key = _x_key

        if not self.check_limit(len(self._points)):
            return OperationResult.failure(LIMIT_EXCEEDED, self._error)

        if len(self._points) <= self.SORT_CHUNK_THRESHOLD:
            current = self._points
            return self._run_whole(
                lambda: _rows_to_array(sorted(_rows(current), key=key)),
                "Point sorting",
            )

        def _sort_chunk(chunk: np.ndarray, chunk_index: int) -> np.ndarray:
            return _rows_to_array(sorted(_rows(chunk), key=key))

        def _merge_chunks(sorted_chunks: List[np.ndarray]) -> np.ndarray:
            merged = heapq.merge(*(_rows(chunk) for chunk in sorted_chunks), key=key)
            return _rows_to_array(list(merged))

        return self._process_in_chunks(
            _sort_chunk, "Point sorting", finalize=_merge_chunks
        )

    def remove_duplicates(self, across_chunks: bool = False) -> OperationResult:
        """
        Drop repeated (x, y) points, keeping the first occurrence.

        Parameters
        ----------
        across_chunks : bool, default=False
            By default duplicates are only detected within a chunk, so a
            repeat that lands in a later chunk survives. Set to True to track
            seen points across the whole set.
        """
        busy = self._reject_if_busy("Duplicate removal")
        if busy is not None:
            return busy

        shared_seen: set = set()

        def _dedupe_chunk(chunk: np.ndarray, chunk_index: int) -> np.ndarray:
            seen = shared_seen if across_chunks else set()
            keep = np.zeros(len(chunk), dtype=bool)
            for i, point in enumerate(_rows(chunk)):
                point_key = _dedupe_key(point)
                if point_key in seen:
                    continue
                seen.add(point_key)
                keep[i] = True
            return chunk[keep]

        return self._process_in_chunks(_dedupe_chunk, "Duplicate removal")

    def interpolate_missing(self) -> OperationResult:
        """
        Fill NaN y values by linear interpolation between neighbouring points.

        Neighbours are taken from the point set as it was before the operation,
        so chunk boundaries do not matter. The first and last points have only
        one neighbour and are left as they are.
        """
        busy = self._reject_if_busy("Missing value interpolation")
        if busy is not None:
            return busy

        original = self._points
        if len(original) < 2:
            return OperationResult.success()

        chunk_size = self._chunk_size
        last_index = len(original) - 1

        def _interpolate_chunk(chunk: np.ndarray, chunk_index: int) -> np.ndarray:
            result = chunk.copy()
            offset = chunk_index * chunk_size
            for i in np.flatnonzero(np.isnan(chunk[:, 1])):
                global_index = offset + i
                if global_index == 0 or global_index == last_index:
                    continue
                x_prev, y_prev = original[global_index - 1]
                x_next, y_next = original[global_index + 1]
                with np.errstate(divide="ignore", invalid="ignore"):
                    slope = (y_next - y_prev) / (x_next - x_prev)
                    result[i, 1] = y_prev + slope * (chunk[i, 0] - x_prev)
            return result

        return self._process_in_chunks(
            _interpolate_chunk, "Missing value interpolation"
        )

    def compress_data(self, target_count: int) -> OperationResult:
        """
        Reduce the set to ``target_count`` points by averaging contiguous segments.

        Lossy and irreversible. Requires ``2 <= target_count < len(self)``;
        anything else is reported as ``invalid_argument``.
        """
        busy = self._reject_if_busy("Data compression")
        if busy is not None:
            return busy

        n = len(self._points)
        if (
            isinstance(target_count, bool)
            or not isinstance(target_count, (int, np.integer))
            or target_count < 2
            or target_count >= n
        ):
            return self._fail(
                INVALID_ARGUMENT,
                f"Data compression failed: target count must be an integer with "
                f"2 <= target_count < {n}, got {target_count!r}",
            )

        current = self._points
        return self._run_whole(
            lambda: compress_points(current, int(target_count)), "Data compression"
        )

    def get_statistics(self) -> Optional[dict]:
        """Statistics snapshot of the current set, or None when it is empty."""
        return compute_statistics(self._points)

    def get_points_for_rendering(self, max_to_show: int = 1000) -> np.ndarray:
        """Decimated copy of the set for display; the stored set is untouched."""
        return decimate_for_rendering(self._points, max_to_show)
