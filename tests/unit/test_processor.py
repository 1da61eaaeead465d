"""Unit tests for the chunked point-set processor."""

import math

import numpy as np
import pytest

from pytabula.points.processor import (
    BUSY,
    INVALID_ARGUMENT,
    LIMIT_EXCEEDED,
    OPERATION_FAILURE,
    ChunkedPointProcessor,
    OperationResult,
    as_point_array,
)


class TestConstruction:
    """Test processor construction and input standardisation."""

    def test_accepts_pairs_dicts_and_arrays(self):
        from_pairs = ChunkedPointProcessor([(0, 1), (1, 2)])
        from_dicts = ChunkedPointProcessor([{"x": 0, "y": 1}, {"x": 1, "y": 2}])
        from_array = ChunkedPointProcessor(np.array([[0.0, 1.0], [1.0, 2.0]]))

        assert from_pairs.to_list() == [(0.0, 1.0), (1.0, 2.0)]
        assert from_dicts.to_list() == from_pairs.to_list()
        assert from_array.to_list() == from_pairs.to_list()

    def test_missing_y_becomes_nan(self):
        processor = ChunkedPointProcessor([{"x": 1, "y": None}, (2, None)])
        assert np.all(np.isnan(processor.points[:, 1]))

    def test_empty_and_single_point_sets_are_allowed(self):
        assert len(ChunkedPointProcessor()) == 0
        assert len(ChunkedPointProcessor([(1, 1)])) == 1

    @pytest.mark.parametrize("kwargs", [{"chunk_size": 0}, {"max_points": -1}, {"chunk_size": 2.5}])
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(ValueError, match="must be a positive integer"):
            ChunkedPointProcessor([(0, 0)], **kwargs)

    def test_malformed_points(self):
        with pytest.raises(ValueError, match="must be an"):
            ChunkedPointProcessor([(1, 2, 3)])
        with pytest.raises(ValueError, match="shape"):
            as_point_array(np.zeros((3, 3)))

    def test_oversized_initial_set_is_kept_and_flagged(self):
        processor = ChunkedPointProcessor([(i, i) for i in range(5)], max_points=3)
        assert len(processor) == 5
        assert "Point limit of 3 exceeded" in processor.error

    def test_points_property_is_a_copy(self, ascending_points):
        processor = ChunkedPointProcessor(ascending_points)
        snapshot = processor.points
        snapshot[0, 0] = 999.0
        assert processor.points[0, 0] == 0.0

    def test_initial_state(self, ascending_points):
        processor = ChunkedPointProcessor(ascending_points, max_points=50, chunk_size=4)
        assert processor.is_processing is False
        assert processor.progress == 0.0
        assert processor.error is None
        assert processor.max_points == 50
        assert processor.chunk_size == 4


class TestCheckLimit:
    """Test limit checking."""

    def test_within_limit(self):
        processor = ChunkedPointProcessor(max_points=100)
        assert processor.check_limit(100) is True
        assert processor.error is None

    def test_exceeded_sets_error_without_mutation(self, ascending_points):
        processor = ChunkedPointProcessor(ascending_points, max_points=100)
        assert processor.check_limit(101) is False
        assert processor.error == "Point limit of 100 exceeded. Current count: 101"
        assert processor.to_list() == ascending_points

    def test_clear_error(self):
        processor = ChunkedPointProcessor(max_points=1)
        processor.check_limit(2)
        processor.clear_error()
        assert processor.error is None


class TestAddAndSetPoints:
    """Test appending and replacing points."""

    def test_add_points_appends_in_order(self):
        processor = ChunkedPointProcessor([(0, 0), (1, 1)], max_points=5)
        result = processor.add_points([(5, 5), (2, 2)])
        assert result == OperationResult(True)
        assert processor.to_list() == [(0, 0), (1, 1), (5, 5), (2, 2)]

    def test_add_points_over_limit_leaves_set_unchanged(self):
        processor = ChunkedPointProcessor([(0, 0), (1, 1)], max_points=3)
        result = processor.add_points([(2, 2), (3, 3)])
        assert not result.ok
        assert result.kind == LIMIT_EXCEEDED
        assert "Current count: 4" in result.error
        assert processor.error == result.error
        assert processor.to_list() == [(0, 0), (1, 1)]

    def test_add_malformed_points(self):
        processor = ChunkedPointProcessor([(0, 0)])
        result = processor.add_points([("a", 1)])
        assert result.kind == INVALID_ARGUMENT
        assert processor.to_list() == [(0, 0)]

    def test_set_points_replaces_whole_set(self, ascending_points):
        processor = ChunkedPointProcessor(ascending_points)
        assert processor.set_points([(7, 7)]).ok
        assert processor.to_list() == [(7, 7)]

    def test_set_points_over_limit(self, ascending_points):
        processor = ChunkedPointProcessor(ascending_points[:2], max_points=5)
        result = processor.set_points(ascending_points)
        assert result.kind == LIMIT_EXCEEDED
        assert len(processor) == 2


class TestFilterPoints:
    """Test chunked filtering."""

    def test_preserves_relative_order(self):
        points = [(float(i), float(i % 3)) for i in range(10)]
        processor = ChunkedPointProcessor(points, chunk_size=3)

        result = processor.filter_points(lambda p: p[1] != 0)

        assert result.ok
        assert processor.to_list() == [p for p in points if p[1] != 0]

    def test_progress_reporting(self, ascending_points):
        seen = []
        processor = ChunkedPointProcessor(
            ascending_points, chunk_size=3, progress_callback=seen.append
        )
        processor.filter_points(lambda p: True)

        assert seen == [0.0, 0.0, 25.0, 50.0, 75.0, 100.0]
        assert processor.progress == 100.0
        processor.reset_progress()
        assert processor.progress == 0.0

    def test_yields_only_for_large_chunks(self):
        calls = []
        points = [(float(i), 0.0) for i in range(1000)]
        processor = ChunkedPointProcessor(
            points, chunk_size=600, yield_callback=lambda: calls.append(1)
        )
        processor.filter_points(lambda p: True)
        # Chunks of 600 and 400 points; only the first exceeds the threshold
        assert len(calls) == 1

    def test_failure_keeps_previous_set(self, ascending_points):
        def predicate(point):
            if point[0] == 5:
                raise ValueError("boom")
            return point[0] < 3

        processor = ChunkedPointProcessor(ascending_points, chunk_size=2)
        result = processor.filter_points(predicate)

        assert result.kind == OPERATION_FAILURE
        assert result.error == "Point filtering failed: boom"
        assert processor.error == result.error
        assert processor.is_processing is False
        assert processor.to_list() == ascending_points

    def test_new_chunked_operation_clears_previous_error(self, ascending_points):
        processor = ChunkedPointProcessor(ascending_points, max_points=20)
        processor.check_limit(21)
        assert processor.filter_points(lambda p: True).ok
        assert processor.error is None

    def test_empty_set(self):
        processor = ChunkedPointProcessor()
        assert processor.filter_points(lambda p: False).ok
        assert len(processor) == 0


class TestBusyGuard:
    """Test rejection of re-entrant operations."""

    def test_operation_during_yield_is_rejected(self):
        nested_results = []
        points = [(float(i), float(i)) for i in range(1000)]
        processor = None

        def on_yield():
            nested_results.append(processor.is_processing)
            nested_results.append(processor.add_points([(0.0, 0.0)]))

        processor = ChunkedPointProcessor(points, chunk_size=600, yield_callback=on_yield)
        result = processor.filter_points(lambda p: p[0] % 2 == 0)

        assert result.ok
        assert nested_results[0] is True
        assert nested_results[1].kind == BUSY
        assert len(processor) == 500
        assert processor.is_processing is False


class TestSortPoints:
    """Test sorting."""

    def test_default_sort_by_x(self):
        processor = ChunkedPointProcessor([(3, 0), (1, 1), (2, 2)])
        assert processor.sort_points().ok
        assert processor.to_list() == [(1, 1), (2, 2), (3, 0)]

    def test_comparator(self):
        processor = ChunkedPointProcessor([(3, 0), (1, 1), (2, 2)])
        processor.sort_points(cmp=lambda a, b: (b[1] > a[1]) - (b[1] < a[1]))
        assert processor.to_list() == [(2, 2), (1, 1), (3, 0)]

    def test_key_and_cmp_together_is_invalid(self):
        processor = ChunkedPointProcessor([(1, 1), (0, 0)])
        result = processor.sort_points(key=lambda p: p[0], cmp=lambda a, b: 0)
        assert result.kind == INVALID_ARGUMENT
        assert processor.to_list() == [(1, 1), (0, 0)]

    def test_large_set_is_globally_sorted_and_stable(self):
        rng = np.random.default_rng(0)
        x = rng.integers(0, 500, size=12000).astype(float)
        points = [(xi, float(i)) for i, xi in enumerate(x)]
        processor = ChunkedPointProcessor(points, max_points=20000, chunk_size=1000)

        result = processor.sort_points()

        assert result.ok
        assert processor.to_list() == sorted(points, key=lambda p: p[0])

    def test_sort_checks_limit(self):
        processor = ChunkedPointProcessor([(i, i) for i in range(4)], max_points=3)
        result = processor.sort_points()
        assert result.kind == LIMIT_EXCEEDED


class TestRemoveDuplicates:
    """Test duplicate removal."""

    def test_duplicates_are_only_removed_within_a_chunk(self):
        processor = ChunkedPointProcessor([(1, 1), (1, 1), (2, 2), (1, 1)], chunk_size=2)
        assert processor.remove_duplicates().ok
        assert processor.to_list() == [(1, 1), (2, 2), (1, 1)]

    def test_across_chunks(self):
        processor = ChunkedPointProcessor([(1, 1), (1, 1), (2, 2), (1, 1)], chunk_size=2)
        assert processor.remove_duplicates(across_chunks=True).ok
        assert processor.to_list() == [(1, 1), (2, 2)]

    def test_nan_points_compare_equal(self):
        processor = ChunkedPointProcessor([(1, None), (1, None), (1, 2)])
        processor.remove_duplicates()
        assert len(processor) == 2

    def test_only_exact_pairs_are_duplicates(self):
        points = [(1, 1), (1, 2), (2, 1)]
        processor = ChunkedPointProcessor(points)
        processor.remove_duplicates()
        assert processor.to_list() == points


class TestInterpolateMissing:
    """Test linear interpolation of missing y values."""

    def test_fills_from_original_neighbours_across_chunks(self):
        processor = ChunkedPointProcessor([(0, 0), (1, None), (2, 4)], chunk_size=1)
        assert processor.interpolate_missing().ok
        assert processor.to_list() == [(0, 0), (1, 2), (2, 4)]

    def test_uneven_spacing(self):
        processor = ChunkedPointProcessor([(0, 0), (3, None), (4, 8)])
        processor.interpolate_missing()
        assert processor.to_list()[1] == (3.0, 6.0)

    def test_edges_and_missing_neighbours_stay_nan(self):
        processor = ChunkedPointProcessor([(0, None), (1, None), (2, None), (3, 6)])
        processor.interpolate_missing()
        assert np.all(np.isnan(processor.points[:3, 1]))
        assert processor.points[3, 1] == 6.0

    def test_fewer_than_two_points_is_a_no_op(self):
        processor = ChunkedPointProcessor([(0, None)])
        assert processor.interpolate_missing().ok
        assert math.isnan(processor.to_list()[0][1])


class TestCompressData:
    """Test compression to segment means."""

    def test_ten_points_to_three(self, ascending_points):
        processor = ChunkedPointProcessor(ascending_points)
        assert processor.compress_data(3).ok
        # Segments [0..2], [3..5], [6..9]
        assert processor.to_list() == [(1.0, 2.0), (4.0, 8.0), (7.5, 15.0)]

    @pytest.mark.parametrize("target", [1, 10, 11, 2.5])
    def test_invalid_target_is_reported(self, ascending_points, target):
        processor = ChunkedPointProcessor(ascending_points)
        result = processor.compress_data(target)
        assert result.kind == INVALID_ARGUMENT
        assert processor.error == result.error
        assert processor.to_list() == ascending_points


class TestStatisticsAndRendering:
    """Test read-only views."""

    def test_statistics(self):
        processor = ChunkedPointProcessor([(0, 1), (1, 2), (2, 3)])
        stats = processor.get_statistics()
        assert stats["x_range"] == {"min": 0.0, "max": 2.0, "span": 2.0}
        assert stats["y_range"] == {"min": 1.0, "max": 3.0, "span": 2.0}
        assert stats["y_statistics"]["average"] == 2.0
        assert stats["duplicates"] == 0
        assert stats["is_sorted"] is True

    def test_statistics_empty(self):
        assert ChunkedPointProcessor().get_statistics() is None

    def test_rendering_decimation(self, ascending_points):
        processor = ChunkedPointProcessor(ascending_points)
        shown = processor.get_points_for_rendering(2)
        assert shown.tolist() == [[0.0, 0.0], [5.0, 10.0]]
        assert len(processor) == 10

    def test_rendering_small_set_unchanged(self, ascending_points):
        processor = ChunkedPointProcessor(ascending_points)
        assert processor.get_points_for_rendering().tolist() == [list(p) for p in ascending_points]
