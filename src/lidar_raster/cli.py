"""
Command Line Interface for LIDAR Raster Tool

Usage:
    lidar-raster info <input>
    lidar-raster rasterize <input> --output <grid> --width 1000 --fill edge
    lidar-raster fill <grid> --output <grid> --method edge
    lidar-raster smooth <grid> --output <grid> --window 3
    lidar-raster generate-test --output <grid>
    lidar-raster stats <grid>
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
import numpy as np

from .io.point_cloud import PointCloudLoader, generate_sample_terrain
from .io.grid_store import save_grid, load_grid
from .core.fill import LinearHoleFiller, EdgeGrowthHoleFiller
from .core.smooth import GeometricMeanSmoother
from .core.synthetic import SyntheticGridGenerator
from .core.pipeline import PipelineConfig, run_pipeline, FILL_METHODS
from .core.validation import ValidationError

logger = logging.getLogger("lidar_raster")


def _print_stats(grid) -> None:
    stats = grid.statistics()
    click.echo("\n" + "=" * 50)
    click.echo("RASTER GRID")
    click.echo("=" * 50)
    click.echo(f"Size:           {grid.width} x {grid.height}")
    click.echo(f"Zone:           {grid.zone or '-'}")
    click.echo(f"Bounds:")
    click.echo(f"  X:            {grid.physical_left:.2f} to {grid.physical_right:.2f}")
    click.echo(f"  Y:            {grid.physical_top:.2f} to {grid.physical_bottom:.2f}")
    click.echo(f"  Z:            {grid.physical_low:.2f} to {grid.physical_high:.2f}")
    click.echo(f"Cells:")
    click.echo(f"  Valid:        {stats['valid_cells']:,}")
    click.echo(f"  Holes:        {stats['hole_cells']:,}")
    click.echo(f"  Filled:       {stats['filled_cells']:,}")
    if "min_elevation" in stats:
        click.echo(
            f"Elevation:      {stats['min_elevation']:.2f} to {stats['max_elevation']:.2f} "
            f"(mean {stats['mean_elevation']:.2f})"
        )
    click.echo("=" * 50)


def _save(grid, output: str) -> None:
    try:
        save_grid(grid, output)
    except (OSError, ValidationError) as e:
        click.echo(f"Error saving grid: {e}", err=True)
        sys.exit(1)
    click.echo(f"Saved to: {output}")


def _load(grid_file: str):
    try:
        return load_grid(grid_file)
    except (OSError, ValidationError) as e:
        click.echo(f"Error loading grid: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version="0.1.0")
@click.option('--verbose', '-v', count=True, help='Log progress (-v info, -vv debug)')
def main(verbose: int):
    """LIDAR Raster Tool

    Convert LIDAR point clouds into dense elevation rasters,
    repairing no-data holes for terrain analysis.
    """
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument('input_file', type=click.Path(exists=True))
def info(input_file: str):
    """Display information about a point cloud file."""
    click.echo(f"Loading: {input_file}")

    try:
        pc = PointCloudLoader.load(input_file)
    except Exception as e:
        click.echo(f"Error loading file: {e}", err=True)
        sys.exit(1)

    header = pc.header

    click.echo("\n" + "=" * 50)
    click.echo("POINT CLOUD INFO")
    click.echo("=" * 50)
    click.echo(f"File:           {input_file}")
    click.echo(f"Points:         {pc.num_points:,}")
    click.echo(f"Point format:   {header.point_format} ({'color' if header.has_color else 'no color'})")
    click.echo(f"Zone:           {pc.zone or '-'}")
    click.echo(f"")
    click.echo(f"Bounds:")
    click.echo(f"  X:            {header.min_x:.2f} to {header.max_x:.2f}")
    click.echo(f"  Y:            {header.min_y:.2f} to {header.max_y:.2f}")
    click.echo(f"  Z:            {header.min_z:.2f} to {header.max_z:.2f}")

    if pc.num_points:
        unique, counts = np.unique(pc.classification, return_counts=True)
        click.echo(f"\nClassifications:")
        for cls, count in zip(unique, counts):
            pct = count / pc.num_points * 100
            click.echo(f"  Class {cls}: {count:,} ({pct:.1f}%)")

    click.echo("=" * 50)


@main.command()
@click.argument('input_file', type=click.Path(exists=True))
@click.option('--output', '-o', required=True, type=click.Path(), help='Output grid file')
@click.option('--width', '-w', type=int, help='Raster width in cells (default: 1000)')
@click.option('--fill', 'fill_method', type=click.Choice(FILL_METHODS),
              help='Hole filling method (default: edge)')
@click.option('--smooth', 'smooth_window', type=int,
              help='Geometric mean window size (default: no smoothing)')
@click.option('--ground-only/--all-points', default=False,
              help='Use only ground-classified points (default: all points)')
@click.option('--subsample', type=click.IntRange(min=1), default=1,
              help='Keep every Nth point (default: 1, all points)')
@click.option('--config', 'config_file', type=click.Path(exists=True),
              help='JSON pipeline config; command line options override it')
@click.option('--summary', type=click.Path(), help='Write a JSON summary of the grid')
def rasterize(
    input_file: str,
    output: str,
    width: Optional[int],
    fill_method: Optional[str],
    smooth_window: Optional[int],
    ground_only: bool,
    subsample: int,
    config_file: Optional[str],
    summary: Optional[str],
):
    """Rasterize a point cloud into a hole-filled elevation grid.

    Examples:

        lidar-raster rasterize tile.las -o tile.grid -w 2000 --fill edge --smooth 3
    """
    try:
        config = PipelineConfig.from_file(config_file) if config_file else PipelineConfig()
        if width is not None:
            config.width = width
        if fill_method is not None:
            config.fill_method = fill_method
        if smooth_window is not None:
            config.smooth_window = smooth_window
        config.validate()
    except (OSError, ValidationError) as e:
        click.echo(f"Error in configuration: {e}", err=True)
        sys.exit(1)

    click.echo(f"Loading point cloud: {input_file}")
    try:
        pc = PointCloudLoader.load(input_file)
        click.echo(f"  Loaded {pc.num_points:,} points")
    except Exception as e:
        click.echo(f"Error loading file: {e}", err=True)
        sys.exit(1)

    if ground_only:
        pc = pc.filter_by_classification([PointCloudLoader.CLASS_GROUND])
        click.echo(f"  Kept {pc.num_points:,} ground points")

    if subsample > 1:
        pc = pc.subsample(subsample)
        click.echo(f"  Subsampled 1 in {subsample}: {pc.num_points:,} points")

    click.echo(
        f"Rasterizing (width: {config.width}, fill: {config.fill_method}, "
        f"smooth: {config.smooth_window or 'off'})..."
    )
    try:
        grid = run_pipeline(pc, config, logger)
    except ValidationError as e:
        click.echo(f"Error rasterizing: {e}", err=True)
        sys.exit(1)

    _print_stats(grid)
    _save(grid, output)

    if summary:
        from .io.exporters import export_summary_json
        from .core.validation import validate_output_path
        try:
            export_summary_json(grid, validate_output_path(summary, "summary JSON"))
        except (OSError, ValidationError) as e:
            click.echo(f"Error saving summary: {e}", err=True)
            sys.exit(1)
        click.echo(f"Summary saved to: {summary}")


@main.command()
@click.argument('grid_file', type=click.Path(exists=True))
@click.option('--output', '-o', required=True, type=click.Path(), help='Output grid file')
@click.option('--method', '-m', type=click.Choice(['edge', 'linear']), default='edge',
              help='Hole filling method (default: edge)')
def fill(grid_file: str, output: str, method: str):
    """Fill the holes of a saved grid."""
    grid = _load(grid_file)
    click.echo(f"Filling {grid.hole_count:,} holes ({method})...")

    if method == 'edge':
        iterations = EdgeGrowthHoleFiller(logger).fill(grid)
        click.echo(f"  {iterations} growth iterations, {grid.hole_count:,} holes remain")
    else:
        LinearHoleFiller(logger).fill(grid)

    _save(grid, output)


@main.command()
@click.argument('grid_file', type=click.Path(exists=True))
@click.option('--output', '-o', required=True, type=click.Path(), help='Output grid file')
@click.option('--window', '-n', default=3, help='Window size (default: 3)')
def smooth(grid_file: str, output: str, window: int):
    """Apply a geometric mean filter to a saved grid."""
    grid = _load(grid_file)
    try:
        smoother = GeometricMeanSmoother(window, logger)
    except ValidationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Smoothing with {window}x{window} window...")
    smoother.smooth(grid)
    _save(grid, output)


@main.command(name='generate-test')
@click.option('--output', '-o', required=True, type=click.Path(), help='Output grid file')
@click.option('--type', 'type_name', default=SyntheticGridGenerator.FILL_TEST,
              help='Synthetic grid type (default: fill-test)')
@click.option('--width', default=500, help='Grid width (default: 500)')
@click.option('--height', default=500, help='Grid height (default: 500)')
@click.option('--seed', type=int, help='Random seed')
def generate_test(output: str, type_name: str, width: int, height: int, seed: Optional[int]):
    """Generate a synthetic grid with holes for testing the fillers.

    Example:
        lidar-raster generate-test -o holes.grid --width 300 --height 200 --seed 1
    """
    try:
        grid = SyntheticGridGenerator(seed=seed, logger=logger).generate(type_name, width, height)
    except ValidationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Generated {width} x {height} '{type_name}' grid with {grid.hole_count:,} holes")
    _save(grid, output)


@main.command()
@click.argument('grid_file', type=click.Path(exists=True))
@click.option('--json', 'as_json', is_flag=True, help='Print statistics as JSON')
def stats(grid_file: str, as_json: bool):
    """Display statistics of a saved grid."""
    grid = _load(grid_file)
    if as_json:
        from .io.exporters import grid_summary
        click.echo(json.dumps(grid_summary(grid), indent=2))
    else:
        _print_stats(grid)


@main.command(name='to-geotiff')
@click.argument('grid_file', type=click.Path(exists=True))
@click.option('--output', '-o', required=True, type=click.Path(), help='Output GeoTIFF file')
def to_geotiff(grid_file: str, output: str):
    """Convert a saved grid to GeoTIFF.

    Example:
        lidar-raster to-geotiff tile.grid -o tile.tif
    """
    from .io.exporters import export_geotiff
    from .core.validation import validate_output_path

    grid = _load(grid_file)
    click.echo(f"Exporting to GeoTIFF...")
    try:
        export_geotiff(grid, validate_output_path(output, "GeoTIFF output"))
    except ImportError:
        click.echo("Error: rasterio required for GeoTIFF export", err=True)
        sys.exit(1)
    except ValidationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Saved to: {output}")


@main.command(name='generate-sample')
@click.option('--output', '-o', required=True, type=click.Path(),
              help='Output file path (.las or .xyz)')
@click.option('--size', default="100,100", help='Terrain size as "width,height" (default: 100,100)')
@click.option('--resolution', '-r', default=1.0, help='Point spacing (default: 1.0)')
@click.option('--base-elevation', default=100.0, help='Base elevation (default: 100)')
@click.option('--hill-height', default=10.0, help='Maximum hill height (default: 10)')
@click.option('--dropout', default=0.0, help='Fraction of points to drop (default: 0)')
@click.option('--seed', default=42, help='Random seed (default: 42)')
def generate_sample(
    output: str,
    size: str,
    resolution: float,
    base_elevation: float,
    hill_height: float,
    dropout: float,
    seed: int,
):
    """Generate a sample terrain point cloud for testing.

    Example:
        lidar-raster generate-sample -o sample.xyz --size 200,200 --dropout 0.3
    """
    try:
        width, height = [float(x) for x in size.split(',')]
    except ValueError:
        click.echo("Error: Size must be 'width,height'", err=True)
        sys.exit(1)

    click.echo(f"Generating sample terrain...")
    click.echo(f"  Size: {width} x {height}")
    click.echo(f"  Resolution: {resolution}")

    pc = generate_sample_terrain(
        size=(width, height),
        resolution=resolution,
        base_elevation=base_elevation,
        noise_scale=2.0,
        hill_height=hill_height,
        dropout=dropout,
        seed=seed,
    )

    click.echo(f"  Generated {pc.num_points:,} points")

    output_path = Path(output)

    if output_path.suffix.lower() in ['.las', '.laz']:
        try:
            import laspy
        except ImportError:
            click.echo("Error: laspy required for LAS output. Use .xyz instead.", err=True)
            sys.exit(1)
        header = laspy.LasHeader(point_format=0, version="1.2")
        header.scales = np.asarray(pc.header.scale)
        header.offsets = np.asarray(pc.header.offset)
        las = laspy.LasData(header)
        las.X = pc.X
        las.Y = pc.Y
        las.Z = pc.Z
        las.classification = pc.classification
        las.write(output)
    else:
        with open(output, 'w') as f:
            for (x, y, z), cls in zip(pc.xyz, pc.classification):
                f.write(f"{x:.3f} {y:.3f} {z:.3f} {cls}\n")
    click.echo(f"Saved to: {output}")


if __name__ == '__main__':
    main()
