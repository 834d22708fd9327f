"""I/O modules for loading and saving data."""

from .point_cloud import PointCloudLoader, PointCloud, PointCloudHeader
from .grid_store import save_grid, load_grid
from .exporters import export_summary_json, export_geotiff

__all__ = [
    "PointCloudLoader",
    "PointCloud",
    "PointCloudHeader",
    "save_grid",
    "load_grid",
    "export_summary_json",
    "export_geotiff",
]
