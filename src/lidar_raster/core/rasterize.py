"""
Rasterization Module

Bins point cloud records into a RasterGrid, averaging elevation per cell.
"""

from __future__ import annotations

import logging
from typing import Tuple
import numpy as np

from .grid import RasterGrid
from .validation import (
    GridGeometryError,
    require_logger,
    validate_physical_extent,
    validate_width,
)
from ..io.point_cloud import PointCloud


def _last_per_cell(cells: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Unique cell indices and the position of the last point in each.

    Returns:
        (unique_cells, last_positions) into the original ``cells`` order
    """
    reversed_cells = cells[::-1]
    unique_cells, first_in_reversed = np.unique(reversed_cells, return_index=True)
    return unique_cells, len(cells) - 1 - first_in_reversed


class Rasterizer:
    """
    Maps point cloud records into grid cells.

    Row 0 of the grid is the top of the map, so the y axis is inverted
    relative to the source coordinates.
    """

    CHUNK_SIZE = 1_000_000

    def __init__(self, logger: logging.Logger):
        self._logger = require_logger(logger, "Rasterizer").getChild("rasterize")

    def grid_height(self, width: int, physical_width: float, physical_height: float) -> int:
        """Rows needed to keep the source aspect ratio at the given width."""
        return int(np.floor(width / physical_width * physical_height))

    def rasterize(self, cloud: PointCloud, width: int) -> RasterGrid:
        """
        Create a populated RasterGrid from a point cloud.

        Args:
            cloud: Input point cloud with header bounds and scale/offset
            width: Target raster width in cells

        Returns:
            RasterGrid with holes (classification 0) where no point landed

        Raises:
            ValidationError: If width is not a positive integer
            GridGeometryError: If the header bounds are degenerate
        """
        width = validate_width(width)
        header = cloud.header

        left, top = header.min_x, header.min_y
        right, bottom = header.max_x, header.max_y
        validate_physical_extent(left, top, right, bottom)

        physical_width = right - left
        physical_height = bottom - top
        height = self.grid_height(width, physical_width, physical_height)
        if height <= 0:
            raise GridGeometryError(
                f"Raster width {width} over a {physical_width:.3f} x "
                f"{physical_height:.3f} extent yields {height} rows. "
                "Increase the raster width."
            )

        with_colors = header.has_color and cloud.rgb is not None
        grid = RasterGrid.empty(
            width,
            height,
            with_colors=with_colors,
            physical_left=left,
            physical_top=top,
            physical_right=right,
            physical_bottom=bottom,
            physical_high=header.max_z,
            physical_low=header.min_z,
            zone=cloud.zone,
        )

        self._logger.info(
            "Rasterizing %s points into %dx%d grid", f"{cloud.num_points:,}", width, height
        )

        x_scale = (width - 1) / physical_width
        y_scale = (height - 1) / physical_height
        scale = np.asarray(header.scale, dtype=np.float64)
        offset = np.asarray(header.offset, dtype=np.float64)

        sums = np.zeros(grid.size, dtype=np.float64)
        contributors = np.zeros(grid.size, dtype=np.int64)
        total = cloud.num_points
        dropped = 0

        for start in range(0, total, self.CHUNK_SIZE):
            self._logger.debug(
                "%s/%s %.2f%%", f"{start:,}", f"{total:,}", start / total * 100
            )
            stop = min(start + self.CHUNK_SIZE, total)

            x = cloud.X[start:stop] * scale[0] + offset[0]
            y = cloud.Y[start:stop] * scale[1] + offset[1]
            z = cloud.Z[start:stop] * scale[2] + offset[2]

            # Points outside the declared area are expected for clipped tiles
            inside = (x >= left) & (x <= right) & (y >= top) & (y <= bottom)
            dropped += int(len(x) - np.count_nonzero(inside))
            if not np.any(inside):
                continue

            xi = np.floor((x[inside] - left) * x_scale).astype(np.int64)
            yi = height - np.floor((y[inside] - top) * y_scale).astype(np.int64) - 1
            np.clip(xi, 0, width - 1, out=xi)
            np.clip(yi, 0, height - 1, out=yi)
            cells = yi * width + xi

            sums += np.bincount(cells, weights=z[inside], minlength=grid.size)
            contributors += np.bincount(cells, minlength=grid.size)

            unique_cells, last = _last_per_cell(cells)
            grid.classifications[unique_cells] = cloud.classification[start:stop][inside][last]

            if with_colors:
                grid.colors[unique_cells] = cloud.rgb[start:stop][inside][last]
                grid.color_mask[unique_cells] = True

        averaged = contributors > 1
        grid.elevations[:] = sums
        grid.elevations[averaged] = sums[averaged] / contributors[averaged]

        if dropped:
            self._logger.debug("Dropped %s points outside the grid area", f"{dropped:,}")
        self._logger.info(
            "Rasterized grid has %s of %s cells without data",
            f"{grid.hole_count:,}", f"{grid.size:,}",
        )

        return grid
