"""
Tests for the point cloud container and loaders.
"""

import numpy as np
import pytest


class TestPointCloud:
    """Tests for the point cloud container."""

    def test_from_xyz_quantizes(self):
        """Test physical coordinates are stored as scaled integers."""
        from lidar_raster.io.point_cloud import PointCloud

        pc = PointCloud.from_xyz(
            [[1.234, 5.678, 9.0]],
            scale=(0.01, 0.01, 0.01),
            offset=(1.0, 2.0, 3.0),
        )

        assert pc.X[0] == 23
        assert pc.Y[0] == 368
        assert pc.Z[0] == 600
        assert pc.x[0] == pytest.approx(1.23)
        assert pc.y[0] == pytest.approx(5.68)
        assert pc.z[0] == pytest.approx(9.0)

    def test_from_xyz_header(self):
        """Test header extent and point format."""
        from lidar_raster.io.point_cloud import PointCloud

        pc = PointCloud.from_xyz(
            [[0.0, 0.0, 1.0], [4.0, 2.0, 3.0]],
            rgb=[[1, 2, 3], [4, 5, 6]],
            zone="EPSG:32612",
        )

        assert pc.header.bounds == pytest.approx((0.0, 0.0, 4.0, 2.0))
        assert pc.header.min_z == pytest.approx(1.0)
        assert pc.header.max_z == pytest.approx(3.0)
        assert pc.header.point_count == 2
        assert pc.header.has_color
        assert pc.zone == "EPSG:32612"

    def test_header_without_color(self):
        """Test formats without RGB."""
        from lidar_raster.io.point_cloud import PointCloudHeader

        for fmt in (0, 1, 4, 6, 99):
            header = PointCloudHeader(0, 0, 0, 1, 1, 1, point_format=fmt)
            assert not header.has_color

    def test_length_mismatch_raises(self):
        """Test coordinate arrays must align."""
        from lidar_raster.io.point_cloud import PointCloud, PointCloudHeader

        with pytest.raises(ValueError, match="classification length"):
            PointCloud(
                X=np.zeros(3, dtype=np.int32),
                Y=np.zeros(3, dtype=np.int32),
                Z=np.zeros(3, dtype=np.int32),
                classification=np.zeros(2, dtype=np.uint8),
                header=PointCloudHeader(0, 0, 0, 1, 1, 1),
            )

    def test_filter_by_classification_keeps_extent(self):
        """Test filtering keeps header bounds so grids stay aligned."""
        from lidar_raster.io.point_cloud import PointCloud

        pc = PointCloud.from_xyz(
            [[0.0, 0.0, 1.0], [5.0, 5.0, 2.0], [10.0, 10.0, 3.0]],
            classification=[2, 6, 2],
        )
        ground = pc.filter_by_classification([2])

        assert ground.num_points == 2
        assert all(ground.classification == 2)
        assert ground.header.bounds == pc.header.bounds
        assert ground.header.point_count == 2

    def test_generate_sample_terrain(self):
        """Test synthetic terrain generation."""
        from lidar_raster.io.point_cloud import generate_sample_terrain

        pc = generate_sample_terrain(size=(20.0, 10.0), resolution=1.0)

        assert pc.num_points == 200
        assert pc.header.bounds == (0.0, 0.0, 19.0, 9.0)

    def test_generate_sample_terrain_dropout(self):
        """Test dropout removes points."""
        from lidar_raster.io.point_cloud import generate_sample_terrain

        full = generate_sample_terrain(size=(20.0, 20.0), resolution=1.0)
        sparse = generate_sample_terrain(size=(20.0, 20.0), resolution=1.0, dropout=0.5)

        assert sparse.num_points < full.num_points
        assert sparse.header.bounds == full.header.bounds

    def test_load_xyz(self, tmp_path):
        """Test loading a plain text point file."""
        from lidar_raster.io.point_cloud import PointCloudLoader

        path = tmp_path / "points.xyz"
        path.write_text("0.0 0.0 10.0 2\n4.0 3.0 12.5 6\n")
        pc = PointCloudLoader.load(path)

        assert pc.num_points == 2
        assert list(pc.classification) == [2, 6]
        assert pc.z[1] == pytest.approx(12.5)

    def test_unsupported_format_raises(self, tmp_path):
        """Test unknown extensions are rejected."""
        from lidar_raster.io.point_cloud import PointCloudLoader

        with pytest.raises(ValueError, match="Unsupported format"):
            PointCloudLoader.load(tmp_path / "cloud.ply")

    def test_subsample_keeps_every_nth_point(self):
        """Test subsampling keeps the header extent."""
        from lidar_raster.io.point_cloud import generate_sample_terrain

        pc = generate_sample_terrain(size=(10.0, 10.0), resolution=1.0)
        sparse = pc.subsample(4)

        assert sparse.num_points == 25
        np.testing.assert_array_equal(sparse.X, pc.X[::4])
        assert sparse.header.bounds == pc.header.bounds
        assert sparse.header.point_count == 25


class TestProjectedCoordinates:
    """Tests for large projected (UTM-scale) coordinates."""

    def test_load_utm_xyz(self, tmp_path):
        """Test northings in the millions survive the XYZ loader."""
        from lidar_raster.io.point_cloud import PointCloudLoader

        path = tmp_path / "utm.xyz"
        path.write_text(
            "500000.0 4500000.0 1500.0 2\n"
            "500010.0 4500010.0 1510.0 2\n"
        )
        pc = PointCloudLoader.load(path)

        np.testing.assert_allclose(pc.x, [500000.0, 500010.0])
        np.testing.assert_allclose(pc.y, [4500000.0, 4500010.0])
        np.testing.assert_allclose(pc.z, [1500.0, 1510.0])
        assert pc.header.offset == (500000.0, 4500000.0, 1500.0)
        assert pc.header.bounds == pytest.approx((500000.0, 4500000.0, 500010.0, 4500010.0))

    def test_offset_derived_from_data(self):
        """Test each axis is offset by the floor of its minimum."""
        from lidar_raster.io.point_cloud import PointCloud

        pc = PointCloud.from_xyz([[431000.75, 4512000.25, -12.5], [431100.0, 4512050.0, 3.0]])

        assert pc.header.offset == (431000.0, 4512000.0, -13.0)
        assert pc.X[0] == 75
        assert pc.Z[0] == 50
        np.testing.assert_allclose(pc.y, [4512000.25, 4512050.0])

    def test_out_of_range_raises(self):
        """Test coordinates that overflow stored int32 values are rejected."""
        from lidar_raster.io.point_cloud import PointCloud
        from lidar_raster.core.validation import ValidationError

        with pytest.raises(ValidationError, match="32-bit"):
            PointCloud.from_xyz(
                [[0.0, 4500000.0, 0.0]],
                scale=(0.001, 0.001, 0.001),
                offset=(0.0, 0.0, 0.0),
            )

    def test_non_finite_raises(self):
        """Test NaN coordinates are rejected."""
        from lidar_raster.io.point_cloud import PointCloud
        from lidar_raster.core.validation import ValidationError

        with pytest.raises(ValidationError):
            PointCloud.from_xyz([[0.0, float("nan"), 0.0], [1.0, 1.0, 1.0]])

    def test_utm_cloud_rasterizes(self, tmp_path, logger):
        """Test a UTM-scale file produces a grid with the true bounds."""
        from lidar_raster.io.point_cloud import PointCloudLoader
        from lidar_raster.core.rasterize import Rasterizer

        path = tmp_path / "utm.xyz"
        path.write_text(
            "500000.0 4500000.0 1500.0 2\n"
            "500008.0 4500000.0 1504.0 2\n"
            "500000.0 4500008.0 1508.0 2\n"
        )
        grid = Rasterizer(logger).rasterize(PointCloudLoader.load(path), 9)

        assert grid.physical_top == pytest.approx(4500000.0)
        assert grid.physical_bottom == pytest.approx(4500008.0)
        assert grid.elevations[grid.index(0, 8)] == pytest.approx(1500.0)
        assert grid.elevations[grid.index(8, 8)] == pytest.approx(1504.0)
        assert grid.elevations[grid.index(0, 0)] == pytest.approx(1508.0)
