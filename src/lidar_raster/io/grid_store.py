"""
Grid Persistence Module

Versioned little-endian binary layout for RasterGrid:

    header      88 bytes  magic, version, flags, width, height, has_colors,
                          left, top, right, bottom, high, low, 2 reserved doubles
    metadata    uint32 length + UTF-8 JSON {"zone": ..., "properties": {...}}
    elevations  float64 x cells
    classes     uint8 x cells
    colors      (only when has_colors) uint8 mask x cells, uint16 x cells x 3
"""

from __future__ import annotations

import json
import struct
from pathlib import Path
from typing import Union
import numpy as np

from ..core.grid import RasterGrid
from ..core.validation import GridFormatError, validate_output_path

MAGIC = b"LRGRID\x00\x00"
FORMAT_VERSION = 1

HEADER = struct.Struct("<8sHHIIB3x8d")
METADATA_LENGTH = struct.Struct("<I")

ELEVATION_DTYPE = np.dtype("<f8")
CLASS_DTYPE = np.dtype("u1")
COLOR_DTYPE = np.dtype("<u2")


def grid_to_bytes(grid: RasterGrid) -> bytes:
    """Serialize a grid to the binary layout."""
    header = HEADER.pack(
        MAGIC,
        FORMAT_VERSION,
        0,
        grid.width,
        grid.height,
        1 if grid.has_colors else 0,
        grid.physical_left,
        grid.physical_top,
        grid.physical_right,
        grid.physical_bottom,
        grid.physical_high,
        grid.physical_low,
        0.0,
        0.0,
    )
    metadata = json.dumps(
        {"zone": grid.zone, "properties": grid.properties},
        sort_keys=True,
    ).encode("utf-8")

    parts = [
        header,
        METADATA_LENGTH.pack(len(metadata)),
        metadata,
        grid.elevations.astype(ELEVATION_DTYPE, copy=False).tobytes(),
        grid.classifications.astype(CLASS_DTYPE, copy=False).tobytes(),
    ]
    if grid.has_colors:
        parts.append(grid.color_mask.astype(CLASS_DTYPE).tobytes())
        parts.append(grid.colors.astype(COLOR_DTYPE, copy=False).tobytes())

    return b"".join(parts)


def _take(data: bytes, offset: int, count: int, dtype: np.dtype, what: str):
    end = offset + count * dtype.itemsize
    if end > len(data):
        raise GridFormatError(
            f"Grid file truncated while reading {what} "
            f"(need {end} bytes, have {len(data)})"
        )
    return np.frombuffer(data, dtype=dtype, count=count, offset=offset).copy(), end


def grid_from_bytes(data: bytes) -> RasterGrid:
    """Deserialize a grid from the binary layout."""
    if len(data) < HEADER.size + METADATA_LENGTH.size:
        raise GridFormatError("Grid file too short to contain a header")

    (magic, version, _flags, width, height, has_colors,
     left, top, right, bottom, high, low, _r1, _r2) = HEADER.unpack_from(data, 0)

    if magic != MAGIC:
        raise GridFormatError("Not a raster grid file (bad magic)")
    if version != FORMAT_VERSION:
        raise GridFormatError(
            f"Unsupported grid file version {version}; "
            f"this build reads version {FORMAT_VERSION}"
        )

    offset = HEADER.size
    (meta_len,) = METADATA_LENGTH.unpack_from(data, offset)
    offset += METADATA_LENGTH.size
    if offset + meta_len > len(data):
        raise GridFormatError("Grid file truncated while reading metadata")
    try:
        metadata = json.loads(data[offset:offset + meta_len].decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise GridFormatError(f"Corrupt grid metadata: {e}") from e
    offset += meta_len

    size = width * height
    elevations, offset = _take(data, offset, size, ELEVATION_DTYPE, "elevations")
    classifications, offset = _take(data, offset, size, CLASS_DTYPE, "classifications")

    colors = color_mask = None
    if has_colors:
        color_mask, offset = _take(data, offset, size, CLASS_DTYPE, "color mask")
        colors, offset = _take(data, offset, size * 3, COLOR_DTYPE, "colors")
        color_mask = color_mask.astype(bool)

    grid = RasterGrid(
        width=width,
        height=height,
        elevations=elevations,
        classifications=classifications,
        colors=colors,
        color_mask=color_mask,
        physical_left=left,
        physical_top=top,
        physical_right=right,
        physical_bottom=bottom,
        physical_high=high,
        physical_low=low,
        zone=metadata.get("zone"),
    )
    for name, value in metadata.get("properties", {}).items():
        grid.set_property(name, value)

    return grid


def save_grid(grid: RasterGrid, filepath: Union[str, Path]) -> Path:
    """Write a grid to disk."""
    path = validate_output_path(filepath, "grid file")
    with open(path, "wb") as f:
        f.write(grid_to_bytes(grid))
    return path


def load_grid(filepath: Union[str, Path]) -> RasterGrid:
    """Read a grid written by save_grid."""
    with open(filepath, "rb") as f:
        return grid_from_bytes(f.read())
