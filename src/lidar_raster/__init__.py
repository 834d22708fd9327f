"""
LIDAR Raster Tool

A Python library for converting LIDAR point clouds into dense elevation
rasters, repairing no-data holes and smoothing the result for terrain
analysis.
"""

__version__ = "0.1.0"

from .core.grid import RasterGrid, FILLED_CLASS
from .core.rasterize import Rasterizer
from .core.fill import LinearHoleFiller, EdgeGrowthHoleFiller
from .core.smooth import GeometricMeanSmoother
from .core.synthetic import SyntheticGridGenerator
from .core.pipeline import PipelineConfig, run_pipeline
from .io.point_cloud import PointCloudLoader, PointCloud

__all__ = [
    "RasterGrid",
    "FILLED_CLASS",
    "Rasterizer",
    "LinearHoleFiller",
    "EdgeGrowthHoleFiller",
    "GeometricMeanSmoother",
    "SyntheticGridGenerator",
    "PipelineConfig",
    "run_pipeline",
    "PointCloudLoader",
    "PointCloud",
]
