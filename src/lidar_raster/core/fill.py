"""
Hole Filling Module

Repairs no-data cells of a RasterGrid.

LinearHoleFiller is a cheap row scan that carries the last elevation
forward. EdgeGrowthHoleFiller grows values inward from the boundary of
every hole, one ring of cells per iteration, so fills are isotropic and
free of the streaks a row scan leaves.
"""

from __future__ import annotations

import logging
from typing import Optional
import numpy as np

from .grid import RasterGrid, FILLED_CLASS, HOLE_CLASS
from .validation import ValidationError, require_logger

# (dy, dx) of the 8-connected neighbourhood
NEIGHBOR_OFFSETS = tuple(
    (dy, dx)
    for dy in (-1, 0, 1)
    for dx in (-1, 0, 1)
    if (dy, dx) != (0, 0)
)


class LinearHoleFiller:
    """
    Fill zero-elevation cells from the nearest non-zero cell to their left.

    The carried value resets to 0 at the start of every row, so holes at
    the left edge of a row stay 0. Classifications are left untouched.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        if logger is None:
            logger = logging.getLogger(__name__)
        self._logger = logger.getChild("linear_fill")

    def fill(self, grid: RasterGrid) -> RasterGrid:
        """Fill holes in place and return the same grid."""
        elevations = grid.as_2d()
        has_value = elevations != 0

        # Column of the last non-zero cell at or before each position, -1 if none
        columns = np.broadcast_to(np.arange(grid.width), elevations.shape)
        last_column = np.where(has_value, columns, -1)
        last_column = np.maximum.accumulate(last_column, axis=1)

        carried = np.take_along_axis(elevations, np.clip(last_column, 0, None), axis=1)
        carried[last_column < 0] = 0.0

        replaced = int(np.count_nonzero(~has_value & (carried != 0)))
        elevations[~has_value] = carried[~has_value]

        self._logger.debug("Linear fill replaced %s cells", f"{replaced:,}")
        return grid


class EdgeGrowthHoleFiller:
    """
    Iterative boundary-driven in-painting.

    Each iteration, every frontier cell contributes its elevation to each
    adjacent hole; a hole reached this way becomes the mean of all its
    contributors and joins the next frontier. Filled cells are marked
    with ``filled_class`` so they stay distinguishable from sensed data.

    Holes with no path to any data cell are left as holes.
    """

    PROGRESS_INTERVAL = 10

    def __init__(self, logger: logging.Logger, filled_class: int = FILLED_CLASS):
        self._logger = require_logger(logger, "EdgeGrowthHoleFiller").getChild("edge_fill")
        if isinstance(filled_class, bool) or not isinstance(filled_class, int) \
                or not 1 <= filled_class <= 255:
            raise ValidationError(
                f"filled_class must be an integer in 1-255, got {filled_class!r}"
            )
        self.filled_class = filled_class

    @staticmethod
    def find_boundary(grid: RasterGrid) -> np.ndarray:
        """
        Flat indices of data cells touching at least one hole.

        The outermost ring of cells is never part of the boundary.
        """
        if grid.width < 3 or grid.height < 3:
            return np.empty(0, dtype=np.int64)

        holes = grid.as_2d(grid.classifications) == HOLE_CLASS
        rows, cols = holes.shape

        touches_hole = np.zeros((rows - 2, cols - 2), dtype=bool)
        for dy, dx in NEIGHBOR_OFFSETS:
            touches_hole |= holes[1 + dy:rows - 1 + dy, 1 + dx:cols - 1 + dx]

        boundary = np.zeros_like(holes)
        boundary[1:-1, 1:-1] = ~holes[1:-1, 1:-1] & touches_hole
        return np.flatnonzero(boundary)

    def fill(self, grid: RasterGrid) -> int:
        """
        Fill holes in place.

        Returns:
            Number of growth iterations that filled at least one cell
        """
        elevations = grid.elevations
        classifications = grid.classifications
        width, height = grid.width, grid.height

        frontier = self.find_boundary(grid)
        self._logger.debug(
            "Edge fill starting with %s boundary cells, %s holes",
            f"{len(frontier):,}", f"{grid.hole_count:,}",
        )

        iterations = 0
        while len(frontier) > 0:
            fy, fx = np.divmod(frontier, width)
            values = elevations[frontier]

            targets = []
            contributions = []
            for dy, dx in NEIGHBOR_OFFSETS:
                ny = fy + dy
                nx = fx + dx
                in_bounds = (ny >= 0) & (ny < height) & (nx >= 0) & (nx < width)
                neighbors = ny[in_bounds] * width + nx[in_bounds]
                is_hole = classifications[neighbors] == HOLE_CLASS
                targets.append(neighbors[is_hole])
                contributions.append(values[in_bounds][is_hole])

            targets = np.concatenate(targets)
            contributions = np.concatenate(contributions)

            # Keyed accumulator: cell index -> (sum, count)
            frontier, slots = np.unique(targets, return_inverse=True)
            if len(frontier) == 0:
                break
            sums = np.bincount(slots, weights=contributions, minlength=len(frontier))
            counts = np.bincount(slots, minlength=len(frontier))

            elevations[frontier] = sums / counts
            classifications[frontier] = self.filled_class

            iterations += 1
            if iterations % self.PROGRESS_INTERVAL == 0:
                self._logger.debug(
                    "Fill iteration %d edge count %d", iterations, len(frontier)
                )

        remaining = grid.hole_count
        if remaining:
            self._logger.info(
                "Edge fill finished after %d iterations; %s cells unreachable",
                iterations, f"{remaining:,}",
            )
        else:
            self._logger.info("Edge fill finished after %d iterations", iterations)

        return iterations
