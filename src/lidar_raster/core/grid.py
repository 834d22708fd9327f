"""
Raster Grid Module

Dense 2-D elevation raster produced from a point cloud. Cells are stored
in flat row-major arrays with the top row of the map first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Dict, Union
import numpy as np

from .validation import PropertyTypeError, validate_grid_dimensions

# Classification value for cells with no sensed data
HOLE_CLASS = 0

# Classification value for cells in-painted by edge growth
FILLED_CLASS = 13

PropertyValue = Union[bool, int, float, str]


@dataclass
class RasterGrid:
    """
    Regular grid of elevation, classification and optional color.

    Attributes:
        width: Number of columns
        height: Number of rows
        elevations: Flat float64 array of length width * height
        classifications: Flat uint8 array; 0 marks a hole
        colors: Optional (width * height, 3) uint16 RGB array
        color_mask: Optional boolean array, True where a color was set
        physical_left/top/right/bottom: Bounding box in source units
        physical_high/low: Z extent in source units
        zone: Coordinate reference identifier, carried through untouched
    """
    width: int
    height: int
    elevations: np.ndarray
    classifications: np.ndarray
    colors: Optional[np.ndarray] = None
    color_mask: Optional[np.ndarray] = None
    physical_left: float = 0.0
    physical_top: float = 0.0
    physical_right: float = 0.0
    physical_bottom: float = 0.0
    physical_high: float = 0.0
    physical_low: float = 0.0
    zone: Optional[str] = None

    _properties: Dict[str, PropertyValue] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        """Validate shapes and take ownership of the arrays."""
        validate_grid_dimensions(self.width, self.height)
        size = self.size

        self.elevations = np.array(self.elevations, dtype=np.float64).ravel()
        self.classifications = np.array(self.classifications, dtype=np.uint8).ravel()

        if len(self.elevations) != size:
            raise ValueError(
                f"elevations length {len(self.elevations)} does not match "
                f"{self.width}x{self.height} grid"
            )
        if len(self.classifications) != size:
            raise ValueError(
                f"classifications length {len(self.classifications)} does not match "
                f"{self.width}x{self.height} grid"
            )

        if self.colors is not None:
            self.colors = np.array(self.colors, dtype=np.uint16).reshape(-1, 3)
            if len(self.colors) != size:
                raise ValueError("colors length must match grid size")
            if self.color_mask is None:
                self.color_mask = np.ones(size, dtype=bool)
            else:
                self.color_mask = np.array(self.color_mask, dtype=bool).ravel()
                if len(self.color_mask) != size:
                    raise ValueError("color_mask length must match grid size")
        else:
            self.color_mask = None

    @classmethod
    def empty(
        cls,
        width: int,
        height: int,
        with_colors: bool = False,
        **metadata,
    ) -> RasterGrid:
        """Create a grid where every cell is a hole at elevation 0."""
        size = width * height
        return cls(
            width=width,
            height=height,
            elevations=np.zeros(size, dtype=np.float64),
            classifications=np.zeros(size, dtype=np.uint8),
            colors=np.zeros((size, 3), dtype=np.uint16) if with_colors else None,
            color_mask=np.zeros(size, dtype=bool) if with_colors else None,
            **metadata,
        )

    @property
    def size(self) -> int:
        """Total number of cells."""
        return self.width * self.height

    @property
    def shape(self) -> Tuple[int, int]:
        """Grid dimensions (rows, cols)."""
        return (self.height, self.width)

    @property
    def physical_width(self) -> float:
        return self.physical_right - self.physical_left

    @property
    def physical_height(self) -> float:
        return self.physical_bottom - self.physical_top

    @property
    def has_colors(self) -> bool:
        return self.colors is not None

    def index(self, x: int, y: int) -> int:
        """Flat index of the cell at column x, row y."""
        return y * self.width + x

    def xy(self, index: int) -> Tuple[int, int]:
        """(x, y) of a flat cell index."""
        y, x = divmod(index, self.width)
        return (x, y)

    def as_2d(self, values: Optional[np.ndarray] = None) -> np.ndarray:
        """View a flat per-cell array as [rows, cols]."""
        if values is None:
            values = self.elevations
        return values.reshape(self.height, self.width)

    @property
    def hole_mask(self) -> np.ndarray:
        """Boolean mask of cells without data."""
        return self.classifications == HOLE_CLASS

    @property
    def filled_mask(self) -> np.ndarray:
        """Boolean mask of cells in-painted by edge growth."""
        return self.classifications == FILLED_CLASS

    @property
    def hole_count(self) -> int:
        return int(np.count_nonzero(self.hole_mask))

    def set_property(self, name: str, value: PropertyValue) -> None:
        """
        Attach auxiliary metadata to the grid.

        Only scalar values (bool, int, float, str) are accepted so the
        property bag survives persistence unchanged.
        """
        if not isinstance(name, str) or not name:
            raise PropertyTypeError("Property name must be a non-empty string")
        if isinstance(value, np.generic):
            value = value.item()
        if not isinstance(value, (bool, int, float, str)):
            raise PropertyTypeError(
                f"Property '{name}' must be bool, int, float or str, "
                f"got {type(value).__name__}"
            )
        self._properties[name] = value

    def get_property(self, name: str, default: Optional[PropertyValue] = None):
        """Read auxiliary metadata, returning default when absent."""
        return self._properties.get(name, default)

    @property
    def properties(self) -> Dict[str, PropertyValue]:
        """Copy of the property bag."""
        return dict(self._properties)

    def copy(self) -> RasterGrid:
        """Deep copy of the grid; no arrays are shared."""
        grid = RasterGrid(
            width=self.width,
            height=self.height,
            elevations=self.elevations.copy(),
            classifications=self.classifications.copy(),
            colors=self.colors.copy() if self.colors is not None else None,
            color_mask=self.color_mask.copy() if self.color_mask is not None else None,
            physical_left=self.physical_left,
            physical_top=self.physical_top,
            physical_right=self.physical_right,
            physical_bottom=self.physical_bottom,
            physical_high=self.physical_high,
            physical_low=self.physical_low,
            zone=self.zone,
        )
        grid._properties = dict(self._properties)
        return grid

    def statistics(self) -> dict:
        """Calculate basic statistics for the grid."""
        valid = self.elevations[~self.hole_mask]

        stats = {
            "width": self.width,
            "height": self.height,
            "total_cells": self.size,
            "valid_cells": int(len(valid)),
            "hole_cells": self.hole_count,
            "filled_cells": int(np.count_nonzero(self.filled_mask)),
        }

        if len(valid) == 0:
            stats["error"] = "No valid elevation data"
            return stats

        stats.update({
            "min_elevation": float(np.nanmin(valid)),
            "max_elevation": float(np.nanmax(valid)),
            "mean_elevation": float(np.nanmean(valid)),
        })
        return stats
