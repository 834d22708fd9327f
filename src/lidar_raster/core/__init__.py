"""Core data structures and algorithms."""

from .grid import RasterGrid, FILLED_CLASS, HOLE_CLASS
from .rasterize import Rasterizer
from .fill import LinearHoleFiller, EdgeGrowthHoleFiller
from .smooth import GeometricMeanSmoother
from .synthetic import SyntheticGridGenerator

__all__ = [
    "RasterGrid",
    "FILLED_CLASS",
    "HOLE_CLASS",
    "Rasterizer",
    "LinearHoleFiller",
    "EdgeGrowthHoleFiller",
    "GeometricMeanSmoother",
    "SyntheticGridGenerator",
]
