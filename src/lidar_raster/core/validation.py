"""
Input Validation Module

Provides validation functions and custom exceptions for the lidar_raster package.
All validation functions provide clear, actionable error messages.
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path
from typing import Union


class ValidationError(ValueError):
    """Base exception for validation errors with user-friendly messages."""
    pass


class ConfigurationError(ValidationError):
    """Missing collaborator or unsupported option."""
    pass


class GridGeometryError(ValidationError):
    """Physical bounds cannot produce a usable grid."""
    pass


class PropertyTypeError(ValidationError):
    """Grid property value has an unsupported type."""
    pass


class GridFormatError(ValidationError):
    """Persisted grid file is malformed or of an unknown version."""
    pass


class FilePermissionError(ValidationError):
    """Cannot write to specified path."""
    pass


def require_logger(logger, context: str):
    """
    Ensure a logging collaborator was supplied.

    Raises:
        ConfigurationError: If logger is None
    """
    if logger is None:
        raise ConfigurationError(
            f"{context} requires a logger. "
            "Pass logging.getLogger(...) or another logging.Logger instance."
        )
    return logger


def validate_width(width: int, context: str = "Raster width") -> int:
    """
    Validate a raster width is a positive integer.

    Args:
        width: The width in cells
        context: Description of what this width is for (used in error messages)

    Returns:
        The validated width as an int

    Raises:
        ValidationError: If width is None, not an integer, or <= 0
    """
    if width is None:
        raise ValidationError(f"{context} cannot be None")

    if isinstance(width, bool) or not isinstance(width, int):
        raise ValidationError(
            f"{context} must be an integer, got {type(width).__name__}"
        )

    if width <= 0:
        raise ValidationError(
            f"{context} must be positive, got {width}. "
            "Typical values are 500-5000 cells."
        )

    return int(width)


def validate_window_size(size: int, context: str = "Smoothing window") -> int:
    """
    Validate a smoothing window size.

    Even sizes are accepted; the window always spans size // 2 cells on
    each side of the centre.

    Raises:
        ValidationError: If size is None, not an integer, or <= 0
    """
    if size is None:
        raise ValidationError(f"{context} cannot be None")

    if isinstance(size, bool) or not isinstance(size, int):
        raise ValidationError(
            f"{context} must be an integer, got {type(size).__name__}"
        )

    if size <= 0:
        raise ValidationError(
            f"{context} must be positive, got {size}. "
            "Typical values are 3, 5 or 7."
        )

    if size % 2 == 0:
        warnings.warn(
            f"{context} of {size} is even; the window spans "
            f"{2 * (size // 2) + 1} cells.",
            UserWarning,
            stacklevel=2
        )

    return int(size)


def validate_physical_extent(
    left: float,
    top: float,
    right: float,
    bottom: float,
) -> None:
    """
    Validate that a bounding box has positive width and height.

    Raises:
        GridGeometryError: If either extent is not positive
    """
    if not right - left > 0:
        raise GridGeometryError(
            f"Physical width must be positive (left={left}, right={right}). "
            "Check the point cloud header bounds."
        )
    if not bottom - top > 0:
        raise GridGeometryError(
            f"Physical height must be positive (top={top}, bottom={bottom}). "
            "Check the point cloud header bounds."
        )


def validate_output_path(filepath: Union[str, Path], context: str = "output file") -> Path:
    """
    Validate output path is writable before attempting to write.

    Args:
        filepath: The path to validate
        context: Description of what will be written (used in error messages)

    Returns:
        The validated path as a Path object

    Raises:
        FilePermissionError: If directory doesn't exist or isn't writable
    """
    path = Path(filepath)
    parent = path.parent

    # Handle empty parent (current directory)
    if str(parent) == '.':
        parent = Path.cwd()

    if not parent.exists():
        raise FilePermissionError(
            f"Cannot write {context}: directory '{parent}' does not exist. "
            "Create the directory first or specify a different path."
        )

    if not os.access(parent, os.W_OK):
        raise FilePermissionError(
            f"Cannot write {context}: no write permission for directory '{parent}'."
        )

    if path.exists() and not os.access(path, os.W_OK):
        raise FilePermissionError(
            f"Cannot overwrite {context}: file '{path}' exists but is not writable."
        )

    return path


def validate_grid_dimensions(width: int, height: int) -> None:
    """
    Validate that grid dimensions are valid.

    Raises:
        GridGeometryError: If dimensions are invalid
    """
    if width <= 0 or height <= 0:
        raise GridGeometryError(
            f"Invalid grid dimensions ({width} wide x {height} high). "
            "Increase the raster width or check the physical bounds."
        )

    # Warn on very large grids
    total_cells = width * height
    if total_cells > 100_000_000:  # 100M cells
        warnings.warn(
            f"Creating very large grid ({width}x{height} = {total_cells:,} cells). "
            "Consider using a smaller raster width to reduce memory usage.",
            UserWarning,
            stacklevel=2
        )
