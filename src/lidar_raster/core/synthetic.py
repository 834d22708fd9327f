"""
Synthetic Grid Module

Builds test grids with known holes for exercising the hole fillers
without real point cloud data.
"""

from __future__ import annotations

import logging
from typing import Optional
import numpy as np

from .grid import RasterGrid, HOLE_CLASS
from .validation import ConfigurationError, ValidationError, validate_width


class SyntheticGridGenerator:
    """
    Factory for synthetic RasterGrids.

    Supported types:
        - "fill-test": flat plane at elevation 100 with random single-cell
          holes and random circular holes
    """

    FILL_TEST = "fill-test"

    def __init__(
        self,
        seed: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
        point_holes: int = 100,
        circle_holes: int = 10,
        min_radius: int = 10,
        radius_range: int = 100,
        elevation: float = 100.0,
    ):
        self._rng = np.random.default_rng(seed)
        if logger is None:
            logger = logging.getLogger(__name__)
        self._logger = logger.getChild("synthetic")
        self.point_holes = point_holes
        self.circle_holes = circle_holes
        self.min_radius = min_radius
        self.radius_range = radius_range
        self.elevation = elevation

    def generate(self, type_name: str, width: int, height: int) -> RasterGrid:
        """
        Create a synthetic grid of the named type.

        Raises:
            ConfigurationError: If the type is not supported
        """
        generators = {
            self.FILL_TEST: self._fill_test_grid,
        }

        if type_name not in generators:
            raise ConfigurationError(
                f"Unsupported synthetic grid type: {type_name!r}. "
                f"Choose one of: {', '.join(generators)}"
            )

        width = validate_width(width, "Synthetic grid width")
        height = validate_width(height, "Synthetic grid height")
        return generators[type_name](width, height)

    def _fill_test_grid(self, width: int, height: int) -> RasterGrid:
        size = width * height
        if self.point_holes >= size:
            raise ValidationError(
                f"Cannot place {self.point_holes} unique holes in a "
                f"{width}x{height} grid; it needs more than {self.point_holes} cells."
            )

        grid = RasterGrid(
            width=width,
            height=height,
            elevations=np.full(size, self.elevation, dtype=np.float64),
            classifications=np.ones(size, dtype=np.uint8),
            physical_left=0.0,
            physical_top=0.0,
            physical_right=100.0,
            physical_bottom=100.0,
            physical_high=self.elevation,
            physical_low=self.elevation,
            zone="12T",
        )

        holes = self._rng.choice(size, size=self.point_holes, replace=False)
        grid.elevations[holes] = 0.0
        grid.classifications[holes] = HOLE_CLASS

        for _ in range(self.circle_holes):
            x1 = int(self._rng.integers(width))
            y1 = int(self._rng.integers(height))
            radius = int(self._rng.integers(self.radius_range)) + self.min_radius
            self.cut_circle(grid, x1, y1, radius)

        grid.set_property("synthetic_type", self.FILL_TEST)
        self._logger.debug(
            "Generated %dx%d fill-test grid with %d holes",
            width, height, grid.hole_count,
        )
        return grid

    @staticmethod
    def cut_circle(grid: RasterGrid, x1: int, y1: int, radius: int) -> None:
        """
        Punch a circular hole whose bounding box starts at (x1, y1).

        A cell is cut when its squared distance to the centre
        (x1 + radius, y1 + radius) is strictly less than radius squared.
        """
        xc = x1 + radius
        yc = y1 + radius

        x0, x_end = max(x1, 0), min(x1 + 2 * radius, grid.width - 1)
        y0, y_end = max(y1, 0), min(y1 + 2 * radius, grid.height - 1)
        if x0 > x_end or y0 > y_end:
            return

        yy, xx = np.mgrid[y0:y_end + 1, x0:x_end + 1]
        inside = (xx - xc) ** 2 + (yy - yc) ** 2 < radius * radius
        cells = (yy[inside] * grid.width + xx[inside]).ravel()

        grid.elevations[cells] = 0.0
        grid.classifications[cells] = HOLE_CLASS
