"""
pytabula: tabulated function toolkit

A library for building, processing and previewing tabulated functions
(discrete point sets sampled from math functions or user input).
"""

# Import from points subpackage
from pytabula.points.decimation import compress_points, decimate_for_rendering
from pytabula.points.preview import PointPreviewPlot
from pytabula.points.processor import ChunkedPointProcessor, OperationResult
from pytabula.points.statistics import compute_statistics

# Import from functions subpackage
from pytabula.functions.mapper import (
    MathFunctionInfo,
    MathFunctionMapper,
    create_default_mapper,
)
from pytabula.functions.tabulate import from_arrays, tabulate
from pytabula.functions.validation import ValidationResult, validate_points

# Import from reports subpackage
from pytabula.reports.performance import configure_logging, process_summary

__all__ = [
    # Point-set processing
    "ChunkedPointProcessor",
    "OperationResult",
    "compress_points",
    "decimate_for_rendering",
    "compute_statistics",
    "PointPreviewPlot",
    # Math functions
    "MathFunctionInfo",
    "MathFunctionMapper",
    "create_default_mapper",
    "tabulate",
    "from_arrays",
    "ValidationResult",
    "validate_points",
    # Reports
    "process_summary",
    "configure_logging",
]
