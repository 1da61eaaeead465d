"""Unit tests for point-set statistics."""

import numpy as np
import pytest

from pytabula.points.statistics import BYTES_PER_POINT, compute_statistics


class TestComputeStatistics:
    """Test statistics snapshots."""

    def test_basic_snapshot(self):
        stats = compute_statistics(np.array([[0, 1], [1, 2], [2, 3]]))
        assert stats["total_points"] == 3
        assert stats["x_range"] == {"min": 0.0, "max": 2.0, "span": 2.0}
        assert stats["y_range"] == {"min": 1.0, "max": 3.0, "span": 2.0}
        assert stats["y_statistics"]["average"] == 2.0
        assert stats["y_statistics"]["sum"] == 6.0
        assert stats["y_statistics"]["std_dev"] == pytest.approx(np.sqrt(2 / 3))
        assert stats["duplicates"] == 0
        assert stats["memory_estimate"] == 3 * BYTES_PER_POINT
        assert stats["is_sorted"] is True

    def test_duplicates_count_repeated_x(self):
        stats = compute_statistics(np.array([[1, 0], [1, 5], [2, 0], [1, 9]]))
        assert stats["duplicates"] == 2

    def test_unsorted_x(self):
        stats = compute_statistics(np.array([[2, 0], [1, 0]]))
        assert stats["is_sorted"] is False

    def test_equal_x_counts_as_sorted(self):
        stats = compute_statistics(np.array([[1, 0], [1, 1], [3, 2]]))
        assert stats["is_sorted"] is True

    def test_single_point(self):
        stats = compute_statistics(np.array([[4.0, 5.0]]))
        assert stats["x_range"]["span"] == 0.0
        assert stats["y_statistics"]["std_dev"] == 0.0
        assert stats["is_sorted"] is True

    def test_empty(self):
        assert compute_statistics(np.empty((0, 2))) is None
