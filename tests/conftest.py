"""
Shared pytest fixtures and configuration for lidar_raster tests.
"""

import logging

import numpy as np
import pytest


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "requires_laspy: requires laspy to be installed"
    )
    config.addinivalue_line(
        "markers", "requires_rasterio: requires rasterio for GeoTIFF tests"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-skip tests based on missing dependencies."""
    try:
        import laspy
        laspy_available = True
    except ImportError:
        laspy_available = False

    try:
        import rasterio
        rasterio_available = True
    except ImportError:
        rasterio_available = False

    for item in items:
        if "requires_laspy" in item.keywords and not laspy_available:
            item.add_marker(pytest.mark.skip(reason="laspy not installed"))
        if "requires_rasterio" in item.keywords and not rasterio_available:
            item.add_marker(pytest.mark.skip(reason="rasterio not installed"))


@pytest.fixture
def logger():
    """Logger handed to every pipeline stage under test."""
    return logging.getLogger("lidar_raster.tests")


@pytest.fixture
def make_grid():
    """Factory for small grids with uniform elevation and data everywhere."""
    from lidar_raster.core.grid import RasterGrid

    def _make(width, height, elevation=10.0, classification=1):
        size = width * height
        return RasterGrid(
            width=width,
            height=height,
            elevations=np.full(size, elevation, dtype=np.float64),
            classifications=np.full(size, classification, dtype=np.uint8),
            physical_left=0.0,
            physical_top=0.0,
            physical_right=float(width),
            physical_bottom=float(height),
            zone="12T",
        )

    return _make


@pytest.fixture
def sample_point_cloud():
    """Generate a small synthetic point cloud with dropped points."""
    from lidar_raster.io.point_cloud import generate_sample_terrain

    return generate_sample_terrain(
        size=(40.0, 30.0),
        resolution=0.5,
        base_elevation=100.0,
        dropout=0.5,
        seed=42,
    )


@pytest.fixture
def tmp_output_dir(tmp_path):
    """Temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def cli_runner():
    """Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
