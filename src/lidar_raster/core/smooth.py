"""
Smoothing Module

Windowed geometric-mean low-pass filter over grid elevations.
"""

from __future__ import annotations

import logging
from typing import Optional
import numpy as np
from scipy.ndimage import correlate

from .grid import RasterGrid
from .validation import validate_window_size


class GeometricMeanSmoother:
    """
    Replace each elevation with the geometric mean of its window.

    The mean is taken over ``1 + elevation`` and shifted back by one so
    zero elevations are well defined. A window containing an elevation of
    exactly -1 has a zero product and smooths to -1; one containing an
    elevation below -1 is undefined and smooths to NaN.

    The window spans ``window_size // 2`` cells on each side and is clipped
    at the grid edges; clipped cells are left out of the count rather than
    treated as zero.
    """

    def __init__(self, window_size: int = 3, logger: Optional[logging.Logger] = None):
        self.window_size = validate_window_size(window_size)
        if logger is None:
            logger = logging.getLogger(__name__)
        self._logger = logger.getChild("smooth")

    @property
    def half_size(self) -> int:
        return self.window_size // 2

    def smoothed(self, grid: RasterGrid) -> np.ndarray:
        """Compute smoothed elevations without modifying the grid."""
        span = 2 * self.half_size + 1
        kernel = np.ones((span, span), dtype=np.float64)

        shifted = 1.0 + grid.as_2d()
        # log(0) = -inf carries a zero product through: exp(-inf) - 1 == -1
        undefined = shifted < 0
        if np.any(undefined):
            self._logger.warning(
                "%d cells have elevation < -1; their windows smooth to NaN",
                int(np.count_nonzero(undefined)),
            )

        with np.errstate(divide='ignore', invalid='ignore'):
            logs = np.log(shifted)
            logs[undefined] = np.nan

        # Sum of logs and number of in-bounds cells per window
        log_sums = correlate(logs, kernel, mode='constant', cval=0.0)
        counts = correlate(np.ones(grid.shape), kernel, mode='constant', cval=0.0)

        return (np.exp(log_sums / counts) - 1.0).ravel()

    def smooth(self, grid: RasterGrid) -> RasterGrid:
        """Smooth the grid's elevations and return the same grid."""
        self._logger.debug(
            "Geometric mean filter, window %dx%d on %dx%d grid",
            2 * self.half_size + 1, 2 * self.half_size + 1, grid.width, grid.height,
        )
        grid.elevations = self.smoothed(grid)
        return grid
