"""
Tests for input validation module.
"""

import logging

import pytest
from pathlib import Path

from lidar_raster.core.validation import (
    ValidationError,
    ConfigurationError,
    GridGeometryError,
    FilePermissionError,
    require_logger,
    validate_width,
    validate_window_size,
    validate_physical_extent,
    validate_output_path,
    validate_grid_dimensions,
)


class TestWidthValidation:
    """Tests for raster width validation."""

    def test_valid_width(self):
        """Test valid widths."""
        assert validate_width(1) == 1
        assert validate_width(2000) == 2000

    def test_zero_width_raises(self):
        """Test that zero width raises ValidationError."""
        with pytest.raises(ValidationError, match="must be positive"):
            validate_width(0)

    def test_none_width_raises(self):
        """Test that None width raises ValidationError."""
        with pytest.raises(ValidationError, match="cannot be None"):
            validate_width(None)

    def test_float_width_raises(self):
        """Test that fractional width raises ValidationError."""
        with pytest.raises(ValidationError, match="must be an integer"):
            validate_width(10.0)

    def test_bool_width_raises(self):
        """Test that booleans are not accepted as integers."""
        with pytest.raises(ValidationError, match="must be an integer"):
            validate_width(True)

    def test_custom_context_in_message(self):
        """Test that custom context appears in error message."""
        with pytest.raises(ValidationError, match="Grid columns"):
            validate_width(-1, context="Grid columns")


class TestWindowSizeValidation:
    """Tests for smoothing window validation."""

    def test_odd_sizes(self):
        """Test valid odd sizes."""
        assert validate_window_size(1) == 1
        assert validate_window_size(7) == 7

    def test_even_size_warns(self):
        """Test even sizes are accepted with a warning."""
        with pytest.warns(UserWarning, match="spans 3 cells"):
            assert validate_window_size(2) == 2

    def test_negative_size_raises(self):
        """Test that negative sizes raise ValidationError."""
        with pytest.raises(ValidationError, match="must be positive"):
            validate_window_size(-3)


class TestPhysicalExtentValidation:
    """Tests for bounding box validation."""

    def test_valid_extent(self):
        """Test a normal bounding box passes."""
        validate_physical_extent(0.0, 0.0, 10.0, 5.0)

    def test_zero_width_raises(self):
        """Test zero physical width."""
        with pytest.raises(GridGeometryError, match="Physical width"):
            validate_physical_extent(3.0, 0.0, 3.0, 5.0)

    def test_inverted_height_raises(self):
        """Test bottom above top."""
        with pytest.raises(GridGeometryError, match="Physical height"):
            validate_physical_extent(0.0, 5.0, 10.0, 1.0)

    def test_nan_extent_raises(self):
        """Test NaN bounds are not treated as positive."""
        with pytest.raises(GridGeometryError):
            validate_physical_extent(0.0, 0.0, float("nan"), 1.0)


class TestRequireLogger:
    """Tests for logger checks."""

    def test_logger_returned(self):
        """Test a logger passes through."""
        logger = logging.getLogger("x")
        assert require_logger(logger, "stage") is logger

    def test_none_raises(self):
        """Test None is a configuration error."""
        with pytest.raises(ConfigurationError, match="stage requires a logger"):
            require_logger(None, "stage")


class TestOutputPathValidation:
    """Tests for output path validation."""

    def test_valid_path_in_existing_directory(self, tmp_path):
        """Test valid path in existing writable directory."""
        output_file = tmp_path / "output.grid"
        result = validate_output_path(output_file)
        assert result == output_file

    def test_string_path_converted_to_path(self, tmp_path):
        """Test string path is converted to Path object."""
        output_file = str(tmp_path / "output.grid")
        result = validate_output_path(output_file)
        assert isinstance(result, Path)

    def test_nonexistent_directory_raises(self, tmp_path):
        """Test that path in nonexistent directory raises error."""
        output_file = tmp_path / "nonexistent_dir" / "output.grid"
        with pytest.raises(FilePermissionError, match="does not exist"):
            validate_output_path(output_file)

    def test_custom_context_in_message(self, tmp_path):
        """Test that custom context appears in error message."""
        output_file = tmp_path / "nonexistent" / "file.json"
        with pytest.raises(FilePermissionError, match="summary JSON"):
            validate_output_path(output_file, context="summary JSON")


class TestGridDimensionsValidation:
    """Tests for grid dimension validation."""

    def test_valid_dimensions_pass(self):
        """Test valid grid dimensions."""
        validate_grid_dimensions(100, 100)

    def test_zero_height_raises(self):
        """Test that zero rows raises GridGeometryError."""
        with pytest.raises(GridGeometryError, match="Invalid grid dimensions"):
            validate_grid_dimensions(100, 0)

    def test_very_large_grid_warns(self):
        """Test that very large grid raises warning."""
        with pytest.warns(UserWarning, match="very large grid"):
            validate_grid_dimensions(15000, 15000)
