"""
Export utilities for raster grids.

Provides a JSON summary and optional GeoTIFF export.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.grid import RasterGrid


def grid_summary(grid: 'RasterGrid') -> dict:
    """Statistics plus physical metadata of a grid."""
    data = grid.statistics()
    data.update({
        "zone": grid.zone,
        "physical_bounds": {
            "left": grid.physical_left,
            "top": grid.physical_top,
            "right": grid.physical_right,
            "bottom": grid.physical_bottom,
        },
        "physical_width": grid.physical_width,
        "physical_height": grid.physical_height,
        "physical_high": grid.physical_high,
        "physical_low": grid.physical_low,
        "has_colors": grid.has_colors,
        "properties": grid.properties,
    })
    return data


def export_summary_json(
    grid: 'RasterGrid',
    filepath: str,
    indent: int = 2,
) -> None:
    """
    Export grid summary to JSON.

    Args:
        grid: RasterGrid to summarize
        filepath: Output JSON file path
        indent: JSON indentation level (default: 2)
    """
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(grid_summary(grid), f, indent=indent)


def export_geotiff(
    grid: 'RasterGrid',
    filepath: str,
    nodata: float = -9999.0,
) -> None:
    """
    Export grid elevations as a single-band GeoTIFF.

    Requires rasterio (optional dependency). Holes are written as nodata.
    Grid rows are already top-first, matching GeoTIFF convention.

    Args:
        grid: RasterGrid to export
        filepath: Output GeoTIFF file path
        nodata: Value written to cells without data
    """
    try:
        import rasterio
        from rasterio.transform import from_origin
    except ImportError:
        raise ImportError(
            "rasterio required for GeoTIFF export. "
            "Install with: pip install rasterio"
        )

    data = grid.as_2d().copy()
    data[grid.as_2d(grid.hole_mask)] = nodata

    transform = from_origin(
        grid.physical_left,
        grid.physical_bottom,
        grid.physical_width / grid.width,
        grid.physical_height / grid.height,
    )

    with rasterio.open(
        Path(filepath),
        'w',
        driver='GTiff',
        height=grid.height,
        width=grid.width,
        count=1,
        dtype=data.dtype,
        crs=grid.zone if grid.zone and grid.zone.upper().startswith("EPSG:") else None,
        transform=transform,
        nodata=nodata,
    ) as dst:
        dst.write(data, 1)
