"""
Point Cloud Loading Module

Handles loading LIDAR data from LAS/LAZ and XYZ text files into a
PointCloud that keeps the stored (scaled integer) coordinates together
with the header that converts them to physical units.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple
import numpy as np

from ..core.validation import ValidationError

try:
    import laspy
    HAS_LASPY = True
except ImportError:
    HAS_LASPY = False


# LAS point data formats that carry red/green/blue
COLOR_POINT_FORMATS = frozenset({2, 3, 5, 7, 8, 10})

# Stored LAS coordinates are signed 32-bit
INT32_MIN = np.iinfo(np.int32).min
INT32_MAX = np.iinfo(np.int32).max


def _extract_crs_from_las(las) -> Optional[str]:
    """
    Extract CRS from LAS file VLRs (Variable Length Records).

    LAS files store CRS in VLRs using:
    - WKT strings (user_id="LASF_WKT", record_id=1) - LAS 1.4+
    - Legacy WKT (user_id="LASF_Projection", record_id=2112) - LAS 1.0-1.3
    - GeoTIFF keys (user_id="LASF_Projection", record_id=34735)

    Returns:
        CRS as WKT string or EPSG code string (e.g., "EPSG:32612"), or None
    """
    vlrs = getattr(las, 'vlrs', None) or getattr(las.header, 'vlrs', None)
    if not vlrs:
        return None

    for vlr in vlrs:
        is_wkt = (
            (vlr.user_id == "LASF_WKT" and vlr.record_id == 1) or
            (vlr.user_id == "LASF_Projection" and vlr.record_id == 2112)
        )
        if not is_wkt:
            continue
        try:
            wkt = vlr.record_data.decode('utf-8').rstrip('\x00')
        except (AttributeError, UnicodeDecodeError):
            continue
        if wkt.strip():
            return wkt

    for vlr in vlrs:
        if vlr.user_id == "LASF_Projection" and vlr.record_id == 34735:
            # GeoKeyDirectoryTag: header of 4 shorts, then 4 shorts per key
            import struct
            data = getattr(vlr, 'record_data', b'') or b''
            if len(data) < 8:
                continue
            num_keys = struct.unpack('<H', data[6:8])[0]
            offset = 8
            for _ in range(num_keys):
                if offset + 8 > len(data):
                    break
                key_id, tiff_tag, _count, value = struct.unpack(
                    '<HHHH', data[offset:offset + 8]
                )
                # ProjectedCSTypeGeoKey = 3072, GeographicTypeGeoKey = 2048
                if key_id in (3072, 2048) and tiff_tag == 0:
                    return f"EPSG:{value}"
                offset += 8

    return None


@dataclass
class PointCloudHeader:
    """
    Header describing a point cloud's extent and coordinate encoding.

    Stored coordinates convert to physical units as
    ``raw * scale + offset`` per axis.
    """
    min_x: float
    min_y: float
    min_z: float
    max_x: float
    max_y: float
    max_z: float
    scale: Tuple[float, float, float] = (0.01, 0.01, 0.01)
    offset: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    point_format: int = 0
    point_count: int = 0

    @property
    def has_color(self) -> bool:
        """Whether the declared point format encodes RGB."""
        return self.point_format in COLOR_POINT_FORMATS

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Spatial bounds (min_x, min_y, max_x, max_y)."""
        return (self.min_x, self.min_y, self.max_x, self.max_y)


@dataclass
class PointCloud:
    """
    Point cloud with stored integer coordinates.

    Attributes:
        X, Y, Z: Stored (scaled) integer coordinates, length N
        classification: N uint8 classification codes
            (2 = ground, 6 = building, etc. ASPRS LAS classes)
        header: Extent, scale/offset and point format
        rgb: Optional Nx3 uint16 colors
        zone: Coordinate reference identifier (EPSG code or WKT)
    """
    X: np.ndarray
    Y: np.ndarray
    Z: np.ndarray
    classification: np.ndarray
    header: PointCloudHeader
    rgb: Optional[np.ndarray] = None
    zone: Optional[str] = None
    _xyz: Optional[np.ndarray] = field(default=None, repr=False)

    def __post_init__(self):
        """Validate data shapes."""
        n_points = len(self.X)

        if len(self.Y) != n_points or len(self.Z) != n_points:
            raise ValueError("X, Y and Z must have the same length")
        if len(self.classification) != n_points:
            raise ValueError("classification length must match coordinates")
        if self.rgb is not None and len(self.rgb) != n_points:
            raise ValueError("rgb length must match coordinates")

    @property
    def num_points(self) -> int:
        """Total number of points."""
        return len(self.X)

    @property
    def xyz(self) -> np.ndarray:
        """Nx3 array of physical coordinates."""
        if self._xyz is None:
            raw = np.column_stack([self.X, self.Y, self.Z]).astype(np.float64)
            self._xyz = raw * np.asarray(self.header.scale) + np.asarray(self.header.offset)
        return self._xyz

    @property
    def x(self) -> np.ndarray:
        return self.xyz[:, 0]

    @property
    def y(self) -> np.ndarray:
        return self.xyz[:, 1]

    @property
    def z(self) -> np.ndarray:
        return self.xyz[:, 2]

    @classmethod
    def from_xyz(
        cls,
        xyz: np.ndarray,
        classification: Optional[np.ndarray] = None,
        rgb: Optional[np.ndarray] = None,
        scale: Tuple[float, float, float] = (0.01, 0.01, 0.01),
        offset: Optional[Tuple[float, float, float]] = None,
        bounds: Optional[Tuple[float, float, float, float]] = None,
        zone: Optional[str] = None,
    ) -> PointCloud:
        """
        Build a point cloud from physical coordinates.

        Coordinates are quantized to the given scale/offset the way a LAS
        writer stores them. Without an offset, each axis is offset by the
        floor of its minimum so projected coordinates fit the int32 range.
        The header extent is taken from ``bounds`` (min_x, min_y, max_x,
        max_y) when given, otherwise from the data.

        Raises:
            ValidationError: If a coordinate does not fit a stored int32
        """
        xyz = np.asarray(xyz, dtype=np.float64).reshape(-1, 3)
        if offset is None:
            offset = (
                tuple(float(v) for v in np.floor(xyz.min(axis=0)))
                if len(xyz) else (0.0, 0.0, 0.0)
            )
        scale_arr = np.asarray(scale, dtype=np.float64)
        offset_arr = np.asarray(offset, dtype=np.float64)

        scaled = np.round((xyz - offset_arr) / scale_arr)
        if not np.all(np.isfinite(scaled)) \
                or np.any(scaled < INT32_MIN) or np.any(scaled > INT32_MAX):
            raise ValidationError(
                "Coordinates do not fit 32-bit stored values with "
                f"scale {tuple(scale)} and offset {tuple(offset)}. "
                "Use a larger scale or an offset near the data."
            )
        raw = scaled.astype(np.int32)

        if classification is None:
            classification = np.full(len(xyz), PointCloudLoader.CLASS_GROUND, dtype=np.uint8)
        else:
            classification = np.asarray(classification, dtype=np.uint8)

        if rgb is not None:
            rgb = np.asarray(rgb, dtype=np.uint16).reshape(-1, 3)

        physical = raw * scale_arr + offset_arr
        if len(physical):
            z_min, z_max = float(physical[:, 2].min()), float(physical[:, 2].max())
        else:
            z_min = z_max = 0.0

        if bounds is None:
            if len(physical) == 0:
                raise ValueError("bounds are required for an empty point cloud")
            bounds = (
                float(physical[:, 0].min()), float(physical[:, 1].min()),
                float(physical[:, 0].max()), float(physical[:, 1].max()),
            )
        min_x, min_y, max_x, max_y = bounds

        header = PointCloudHeader(
            min_x=min_x, min_y=min_y, min_z=z_min,
            max_x=max_x, max_y=max_y, max_z=z_max,
            scale=tuple(float(s) for s in scale),
            offset=tuple(float(o) for o in offset),
            point_format=2 if rgb is not None else 0,
            point_count=len(xyz),
        )

        return cls(
            X=raw[:, 0], Y=raw[:, 1], Z=raw[:, 2],
            classification=classification,
            header=header,
            rgb=rgb,
            zone=zone,
        )

    def filter_by_classification(self, classes: list[int]) -> PointCloud:
        """
        Return a new PointCloud containing only points with specified classifications.

        The header extent is kept so the filtered cloud rasterizes onto the
        same grid as the original.
        """
        mask = np.isin(self.classification, classes)
        return self._apply_mask(mask)

    def subsample(self, factor: int = 10) -> PointCloud:
        """Return every Nth point (for quick testing)."""
        return self._apply_mask(np.arange(self.num_points) % factor == 0)

    def _apply_mask(self, mask: np.ndarray) -> PointCloud:
        """Apply boolean mask to create filtered point cloud."""
        header = replace(self.header, point_count=int(np.count_nonzero(mask)))
        return PointCloud(
            X=self.X[mask].copy(),
            Y=self.Y[mask].copy(),
            Z=self.Z[mask].copy(),
            classification=self.classification[mask].copy(),
            header=header,
            rgb=self.rgb[mask].copy() if self.rgb is not None else None,
            zone=self.zone,
        )


class PointCloudLoader:
    """
    Factory for loading point clouds from various file formats.

    Supported formats:
        - LAS/LAZ (requires laspy)
        - XYZ (plain text: x y z [classification] per line)
    """

    # ASPRS LAS ground classification
    CLASS_GROUND = 2

    @classmethod
    def load(cls, filepath: str | Path, **kwargs) -> PointCloud:
        """
        Load point cloud from file, auto-detecting format.

        Args:
            filepath: Path to point cloud file
            **kwargs: Format-specific options

        Returns:
            PointCloud instance
        """
        filepath = Path(filepath)
        suffix = filepath.suffix.lower()

        loaders = {
            '.las': cls._load_las,
            '.laz': cls._load_las,
            '.xyz': cls._load_xyz,
            '.txt': cls._load_xyz,
        }

        if suffix not in loaders:
            raise ValueError(f"Unsupported format: {suffix}")

        return loaders[suffix](filepath, **kwargs)

    @classmethod
    def _load_las(cls, filepath: Path, zone: Optional[str] = None, **kwargs) -> PointCloud:
        """Load LAS/LAZ file using laspy."""
        if not HAS_LASPY:
            raise ImportError(
                "laspy is required to load LAS/LAZ files. "
                "Install with: pip install laspy lazrs"
            )

        with laspy.open(filepath) as reader:
            las = reader.read()

        header = las.header
        point_format = int(header.point_format.id)
        dimensions = set(header.point_format.dimension_names)

        rgb = None
        if {'red', 'green', 'blue'} <= dimensions:
            rgb = np.column_stack([las.red, las.green, las.blue]).astype(np.uint16)

        return PointCloud(
            X=np.asarray(las.X, dtype=np.int32),
            Y=np.asarray(las.Y, dtype=np.int32),
            Z=np.asarray(las.Z, dtype=np.int32),
            classification=np.asarray(las.classification, dtype=np.uint8),
            header=PointCloudHeader(
                min_x=float(header.mins[0]),
                min_y=float(header.mins[1]),
                min_z=float(header.mins[2]),
                max_x=float(header.maxs[0]),
                max_y=float(header.maxs[1]),
                max_z=float(header.maxs[2]),
                scale=tuple(float(s) for s in header.scales),
                offset=tuple(float(o) for o in header.offsets),
                point_format=point_format,
                point_count=int(header.point_count),
            ),
            rgb=rgb,
            zone=zone if zone is not None else _extract_crs_from_las(las),
        )

    @classmethod
    def _load_xyz(
        cls,
        filepath: Path,
        delimiter: str = None,
        skip_header: int = 0,
        scale: Tuple[float, float, float] = (0.001, 0.001, 0.001),
        zone: Optional[str] = None,
        **kwargs
    ) -> PointCloud:
        """
        Load XYZ text file.

        Expected format: x y z [classification] per line
        """
        data = np.loadtxt(
            filepath,
            delimiter=delimiter,
            skiprows=skip_header,
        )

        if data.ndim == 1:
            data = data.reshape(1, -1)

        if data.shape[1] < 3:
            raise ValueError("XYZ file must have at least 3 columns")

        classification = None
        if data.shape[1] >= 4:
            classification = data[:, 3].astype(np.uint8)

        return PointCloud.from_xyz(
            data[:, :3],
            classification=classification,
            scale=scale,
            zone=zone,
        )


def generate_sample_terrain(
    size: Tuple[float, float] = (100.0, 100.0),
    resolution: float = 1.0,
    base_elevation: float = 100.0,
    noise_scale: float = 5.0,
    hill_height: float = 10.0,
    dropout: float = 0.0,
    seed: int = 42,
) -> PointCloud:
    """
    Generate synthetic terrain point cloud for testing.

    Creates a terrain with gentle hills and random noise,
    useful for testing without real LIDAR data.

    Args:
        size: (width, height) in meters
        resolution: Point spacing in meters
        base_elevation: Base elevation value
        noise_scale: Amount of random noise
        hill_height: Maximum hill height
        dropout: Fraction of points randomly removed, to leave holes
        seed: Random seed for reproducibility

    Returns:
        PointCloud with synthetic terrain
    """
    rng = np.random.default_rng(seed)

    width, height = size
    x = np.arange(0, width, resolution)
    y = np.arange(0, height, resolution)
    xx, yy = np.meshgrid(x, y)

    # Create terrain with hills using sin waves
    zz = base_elevation + (
        hill_height * np.sin(xx / 20) * np.cos(yy / 25) +
        hill_height * 0.5 * np.sin(xx / 10 + yy / 15) +
        noise_scale * rng.standard_normal(xx.shape)
    )

    xyz = np.column_stack([
        xx.ravel(),
        yy.ravel(),
        zz.ravel()
    ])

    if dropout > 0:
        xyz = xyz[rng.random(len(xyz)) >= dropout]

    return PointCloud.from_xyz(
        xyz,
        bounds=(0.0, 0.0, float(x[-1]), float(y[-1])),
    )
