"""
Tests for synthetic test grid generation.
"""

import numpy as np
import pytest

from lidar_raster.core.synthetic import SyntheticGridGenerator


class TestSyntheticGridGenerator:
    """Tests for the fill-test grid."""

    def test_fill_test_metadata(self):
        """Test the flat plane and its physical metadata."""
        grid = SyntheticGridGenerator(seed=1, point_holes=0, circle_holes=0).generate(
            "fill-test", 30, 20
        )

        assert grid.width == 30
        assert grid.height == 20
        assert grid.zone == "12T"
        assert (grid.physical_left, grid.physical_top) == (0.0, 0.0)
        assert (grid.physical_right, grid.physical_bottom) == (100.0, 100.0)
        assert np.all(grid.elevations == 100.0)
        assert np.all(grid.classifications == 1)
        assert grid.get_property("synthetic_type") == "fill-test"

    def test_point_holes_unique(self):
        """Test 100 point holes on 101+ cells never collide."""
        for seed in range(5):
            grid = SyntheticGridGenerator(seed=seed, circle_holes=0).generate(
                "fill-test", 101, 1
            )
            assert grid.hole_count == 100

    def test_holes_are_zeroed(self):
        """Test hole cells have both elevation and classification 0."""
        grid = SyntheticGridGenerator(seed=2).generate("fill-test", 80, 80)

        holes = grid.hole_mask
        assert holes.any()
        assert np.all(grid.elevations[holes] == 0.0)
        assert np.all(grid.elevations[~holes] == 100.0)

    def test_too_many_point_holes_raises(self):
        """Test point holes must leave at least one data cell."""
        from lidar_raster.core.validation import ValidationError

        generator = SyntheticGridGenerator(seed=0, point_holes=100)
        with pytest.raises(ValidationError, match="unique holes"):
            generator.generate("fill-test", 10, 10)

    def test_seed_reproducible(self):
        """Test equal seeds produce equal grids."""
        first = SyntheticGridGenerator(seed=11).generate("fill-test", 64, 48)
        second = SyntheticGridGenerator(seed=11).generate("fill-test", 64, 48)

        np.testing.assert_array_equal(first.classifications, second.classifications)

    def test_unknown_type_raises(self):
        """Test unsupported grid types fail loudly."""
        from lidar_raster.core.validation import ConfigurationError

        with pytest.raises(ConfigurationError, match="Unsupported synthetic grid type"):
            SyntheticGridGenerator().generate("mountains", 10, 10)

    def test_invalid_dimensions_raise(self):
        """Test width and height validation."""
        from lidar_raster.core.validation import ValidationError

        with pytest.raises(ValidationError, match="Synthetic grid height"):
            SyntheticGridGenerator(point_holes=0).generate("fill-test", 10, 0)


class TestCutCircle:
    """Tests for circular hole cutting."""

    def test_circle_uses_strict_distance(self, make_grid):
        """Test cells strictly inside the radius are cut."""
        grid = make_grid(20, 20)

        SyntheticGridGenerator.cut_circle(grid, 5, 5, 3)

        # lattice points with dx^2 + dy^2 < 9 around centre (8, 8)
        assert grid.hole_count == 25
        assert grid.classifications[grid.index(8, 8)] == 0
        assert grid.classifications[grid.index(10, 10)] == 0
        assert grid.classifications[grid.index(5, 8)] == 1
        assert grid.classifications[grid.index(8, 11)] == 1

    def test_circle_clipped_at_edges(self, make_grid):
        """Test circles hanging off the grid only cut in-bounds cells."""
        grid = make_grid(10, 10)

        SyntheticGridGenerator.cut_circle(grid, -3, -3, 3)

        # centre (0, 0): only the quarter disc inside the grid
        assert grid.hole_count == 9
        assert grid.classifications[grid.index(0, 0)] == 0

    def test_circle_fully_outside(self, make_grid):
        """Test circles entirely off the grid do nothing."""
        grid = make_grid(10, 10)

        SyntheticGridGenerator.cut_circle(grid, 50, 50, 4)

        assert grid.hole_count == 0
