from typing import Optional, Tuple

import matplotlib.figure
import matplotlib.pyplot as plt
import numpy as np
from loguru import logger

from pytabula.points.decimation import decimate_for_rendering
from pytabula.points.processor import PointsLike, as_point_array

# Axis padding as a fraction of the data span
AXIS_PADDING_FRACTION = 0.1
# Markers are drawn only for sets up to this size
MARKER_POINT_LIMIT = 100


def _padded_limits(values: np.ndarray) -> Tuple[float, float]:
    """Axis limits padded by AXIS_PADDING_FRACTION of the finite span."""
    finite = values[np.isfinite(values)]
    if finite.size == 0:
        return -1.0, 1.0
    v_min, v_max = float(np.min(finite)), float(np.max(finite))
    padding = (v_max - v_min) * AXIS_PADDING_FRACTION
    if padding == 0:
        padding = max(abs(v_min) * AXIS_PADDING_FRACTION, 1.0)
    return v_min - padding, v_max + padding


class PointPreviewPlot:
    """
    Line preview of a tabulated function.

    Large sets are decimated for display; the input data is never modified.
    """

    def __init__(
        self,
        points: PointsLike,
        title: str = "Function preview",
        max_points: int = 1000,
    ):
        """
        Initialise the preview.

        Parameters
        ----------
        points : PointsLike
            Points to preview.
        title : str, default="Function preview"
            Figure title.
        max_points : int, default=1000
            Maximum number of points drawn.
        """
        self.points = as_point_array(points)
        self.title = title
        self.max_points = max_points
        self.fig: Optional[matplotlib.figure.Figure] = None
        self.ax = None

        if len(self.points) == 0:
            logger.warning("PointPreviewPlot initialised with no points.")

    def render(self) -> Optional[matplotlib.figure.Figure]:
        """
        Draw the preview figure.

        Returns
        -------
        Optional[matplotlib.figure.Figure]
            The figure, or None when there is nothing to draw.
        """
        if len(self.points) == 0:
            logger.warning("No points to preview.")
            return None

        shown = decimate_for_rendering(self.points, self.max_points)
        shown = shown[np.argsort(shown[:, 0], kind="stable")]
        x, y = shown[:, 0], shown[:, 1]

        self.fig, self.ax = plt.subplots(figsize=(8, 4))
        marker = "o" if len(self.points) <= MARKER_POINT_LIMIT else None
        self.ax.plot(x, y, marker=marker, markersize=3, linewidth=1.5, label="f(x)")
        self.ax.fill_between(x, y, alpha=0.1)

        self.ax.set_xlim(*_padded_limits(x))
        self.ax.set_ylim(*_padded_limits(y))
        self.ax.set_xlabel("X")
        self.ax.set_ylabel("Y = f(X)")
        self.ax.set_title(self.title)
        self.ax.grid(True, alpha=0.3)

        logger.debug(
            f"Preview drawn with {len(shown)} of {len(self.points)} points"
        )
        return self.fig

    def save(self, filepath: str) -> None:
        """
        Save the preview figure, rendering it first if needed.

        Parameters
        ----------
        filepath : str
            Output image path.
        """
        if self.fig is None:
            self.render()
        if self.fig is not None:
            self.fig.savefig(filepath)
            logger.info(f"Preview figure saved to {filepath}")

    def close(self) -> None:
        if self.fig is not None:
            plt.close(self.fig)
            self.fig = None
            self.ax = None
