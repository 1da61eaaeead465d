"""
Point-set components for pytabula.

This package contains the chunked point-set processor and the numeric
helpers it uses for compression, decimation and statistics.
"""

from pytabula.points.decimation import (
    compress_points,
    decimate_for_rendering,
    render_stride,
)
from pytabula.points.preview import PointPreviewPlot
from pytabula.points.processor import (
    ChunkedPointProcessor,
    OperationResult,
    as_point_array,
)
from pytabula.points.statistics import compute_statistics

__all__ = [
    "ChunkedPointProcessor",
    "OperationResult",
    "as_point_array",
    "compress_points",
    "decimate_for_rendering",
    "render_stride",
    "compute_statistics",
    "PointPreviewPlot",
]
