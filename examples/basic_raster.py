"""
Basic Rasterization Example

This example demonstrates:
1. Generating a point cloud with missing returns
2. Rasterizing it into an elevation grid
3. Comparing linear and edge-growth hole filling
4. Smoothing and saving the result

Run from the project root after `pip install -e .`:
    python examples/basic_raster.py
"""

import logging

import numpy as np

from lidar_raster.io.point_cloud import generate_sample_terrain
from lidar_raster.io.grid_store import save_grid
from lidar_raster.io.exporters import export_summary_json
from lidar_raster.core.rasterize import Rasterizer
from lidar_raster.core.fill import LinearHoleFiller, EdgeGrowthHoleFiller
from lidar_raster.core.smooth import GeometricMeanSmoother


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    logger = logging.getLogger("lidar_raster.example")

    print("=" * 60)
    print("LIDAR RASTER - EXAMPLE")
    print("=" * 60)

    # =========================================================================
    # Step 1: Generate point cloud
    # =========================================================================
    print("\n[1] Generating sample terrain...")

    point_cloud = generate_sample_terrain(
        size=(200.0, 150.0),     # 200m x 150m site
        resolution=1.0,          # 1m point spacing
        base_elevation=100.0,
        hill_height=8.0,
        dropout=0.4,             # 40% of returns missing
        seed=42,
    )
    left, top, right, bottom = point_cloud.header.bounds
    print(f"   Points: {point_cloud.num_points:,}")
    print(f"   X range: {left:.1f} to {right:.1f}")
    print(f"   Y range: {top:.1f} to {bottom:.1f}")

    # =========================================================================
    # Step 2: Rasterize
    # =========================================================================
    print("\n[2] Rasterizing...")

    grid = Rasterizer(logger).rasterize(point_cloud, 400)
    print(f"   Grid: {grid.width} x {grid.height}")
    print(f"   Holes: {grid.hole_count:,} of {grid.size:,} cells")

    # =========================================================================
    # Step 3: Fill holes two ways
    # =========================================================================
    print("\n[3] Filling holes...")

    linear = LinearHoleFiller(logger).fill(grid.copy())
    edge = grid.copy()
    iterations = EdgeGrowthHoleFiller(logger).fill(edge)

    holes = grid.hole_mask
    print(f"   Linear fill mean at holes: {linear.elevations[holes].mean():.2f}")
    print(f"   Edge fill mean at holes:   {edge.elevations[holes].mean():.2f}")
    print(f"   Edge fill iterations:      {iterations}")

    # =========================================================================
    # Step 4: Smooth and save
    # =========================================================================
    print("\n[4] Smoothing and saving...")

    before = np.std(np.diff(edge.as_2d(), axis=1))
    GeometricMeanSmoother(3, logger).smooth(edge)
    after = np.std(np.diff(edge.as_2d(), axis=1))
    print(f"   Row gradient std: {before:.3f} -> {after:.3f}")

    save_grid(edge, "example_output.grid")
    export_summary_json(edge, "example_summary.json")
    print("   Saved example_output.grid and example_summary.json")


if __name__ == "__main__":
    main()
