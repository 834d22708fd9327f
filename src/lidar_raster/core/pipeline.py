"""
Pipeline Module

Runs rasterization, hole filling and smoothing in sequence.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Optional, Union

from .grid import RasterGrid, FILLED_CLASS
from .rasterize import Rasterizer
from .fill import LinearHoleFiller, EdgeGrowthHoleFiller
from .smooth import GeometricMeanSmoother
from .validation import (
    ConfigurationError,
    ValidationError,
    require_logger,
    validate_width,
    validate_window_size,
)
from ..io.point_cloud import PointCloud

FILL_METHODS = ("edge", "linear", "none")


@dataclass
class PipelineConfig:
    """
    Parameters for a rasterize -> fill -> smooth run.

    Attributes:
        width: Target raster width in cells
        fill_method: "edge", "linear" or "none"
        smooth_window: Geometric mean window size, or None to skip smoothing
        filled_class: Classification written to cells filled by edge growth
    """
    width: int = 1000
    fill_method: str = "edge"
    smooth_window: Optional[int] = None
    filled_class: int = FILLED_CLASS

    def validate(self) -> PipelineConfig:
        """Check every value, raising ValidationError on the first bad one."""
        validate_width(self.width)
        if self.fill_method not in FILL_METHODS:
            raise ConfigurationError(
                f"fill_method must be one of {', '.join(FILL_METHODS)}, "
                f"got {self.fill_method!r}"
            )
        if self.smooth_window is not None:
            validate_window_size(self.smooth_window)
        if isinstance(self.filled_class, bool) or not isinstance(self.filled_class, int) \
                or not 1 <= self.filled_class <= 255:
            raise ValidationError(
                f"filled_class must be an integer in 1-255, got {self.filled_class!r}"
            )
        return self

    @classmethod
    def from_dict(cls, data: dict) -> PipelineConfig:
        """Build a validated config, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown pipeline option(s): {', '.join(unknown)}. "
                f"Valid options: {', '.join(sorted(known))}"
            )
        return cls(**data).validate()

    @classmethod
    def from_file(cls, filepath: Union[str, Path]) -> PipelineConfig:
        """Load a config from a JSON file."""
        with open(filepath, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON in {filepath}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"{filepath} must contain a JSON object")
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return asdict(self)


def run_pipeline(
    cloud: PointCloud,
    config: PipelineConfig,
    logger: logging.Logger,
) -> RasterGrid:
    """
    Rasterize a point cloud, then fill and smooth the grid as configured.

    Returns:
        The finished RasterGrid
    """
    logger = require_logger(logger, "run_pipeline")
    config.validate()

    grid = Rasterizer(logger).rasterize(cloud, config.width)

    if config.fill_method == "edge":
        EdgeGrowthHoleFiller(logger, filled_class=config.filled_class).fill(grid)
    elif config.fill_method == "linear":
        LinearHoleFiller(logger).fill(grid)

    if config.smooth_window is not None:
        GeometricMeanSmoother(config.smooth_window, logger).smooth(grid)

    grid.set_property("fill_method", config.fill_method)
    if config.smooth_window is not None:
        grid.set_property("smooth_window", config.smooth_window)

    return grid
