#!/usr/bin/env python3
"""
Pairwise Region Distance Calculator

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Minimum great-circle distance (km) between two region
geometries given in lon/lat degrees.

Algorithm:
1. Intersecting or touching geometries are at distance exactly 0. This is
   checked first so boundary sampling never yields a small positive value
   for neighbours.
2. Otherwise every vertex of A is measured against every boundary segment
   of B (point-to-segment on the sphere), then the roles are reversed.
   The global minimum of both passes is the distance. The second pass is
   skipped when the first already returns 0.
3. A point/segment pair producing a non-finite value is excluded from the
   minimum. If nothing valid remains the pair is UNKNOWN_DISTANCE_KM.

Point-to-segment on the sphere:
- Points are unit vectors. For segment A->B with pole n = A×B/|A×B| the
  foot of P lies inside the arc iff P·(n×A) >= 0 and P·(B×n) >= 0.
- Inside: cross-track angle asin(|P·n|). Outside: nearer endpoint angle.
- Zero-length (or antipodal) segments reduce to endpoint distance.

Key Functions:
- explode_vertices(): Polygon/MultiPolygon -> (n, 2) lon/lat vertices
- polygon_to_segments(): Polygon/MultiPolygon -> segment start/end arrays
- point_segment_distances_km(): (m, k) distance block
- directional_min_km(): One pass (vertices of A vs segments of B)
- min_distance_km(): Full two-pass distance
- PairwiseDistanceCalculator: Configured wrapper used by cache and generator

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import math
from typing import List, Optional, Tuple

import numpy as np
from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry

from geoclue.config_types import GeodesyConfig
from geoclue.models import UNKNOWN_DISTANCE_KM

logger = logging.getLogger("GeoClue.Geometry.Pairwise")

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

EARTH_RADIUS_KM = 6371.0088

# Cap on (vertices x segments) evaluated in one numpy block
MAX_BLOCK_ELEMENTS = 2_000_000

# |A×B| below this marks a degenerate segment
_DEGENERATE_NORM = 1e-15


# ═══════════════════════════════════════════════════════════════════════════
# 🧩 POLYGON DECOMPOSITION
# ═══════════════════════════════════════════════════════════════════════════


def _member_polygons(geometry: BaseGeometry) -> List[Polygon]:
    if geometry.geom_type == "Polygon":
        return [geometry]
    if geometry.geom_type == "MultiPolygon":
        return list(geometry.geoms)
    raise ValueError(f"Expected Polygon or MultiPolygon, got {geometry.geom_type}")


def _rings(geometry: BaseGeometry) -> List[np.ndarray]:
    rings = []
    for polygon in _member_polygons(geometry):
        if polygon.is_empty:
            continue
        for ring in [polygon.exterior, *polygon.interiors]:
            coords = np.asarray(ring.coords, dtype=float)
            if len(coords):
                rings.append(coords[:, :2])
    return rings


def explode_vertices(geometry: BaseGeometry) -> np.ndarray:
    """
    All boundary vertices of a polygonal geometry.

    The closing vertex of each ring is dropped (it repeats the first).

    Returns:
        (n, 2) array of lon/lat pairs
    """
    rings = [ring[:-1] if len(ring) > 1 else ring for ring in _rings(geometry)]
    if not rings:
        return np.empty((0, 2))
    return np.vstack(rings)


def polygon_to_segments(geometry: BaseGeometry) -> Tuple[np.ndarray, np.ndarray]:
    """
    Decompose every ring (exterior and holes) into line segments.

    Returns:
        Tuple of (starts, ends), each (k, 2) lon/lat arrays
    """
    starts, ends = [], []
    for ring in _rings(geometry):
        if len(ring) < 2:
            continue
        starts.append(ring[:-1])
        ends.append(ring[1:])
    if not starts:
        return np.empty((0, 2)), np.empty((0, 2))
    return np.vstack(starts), np.vstack(ends)


def lonlat_to_unit_vectors(lonlat: np.ndarray) -> np.ndarray:
    """Convert (n, 2) lon/lat degrees to (n, 3) unit vectors."""
    lon = np.radians(lonlat[:, 0])
    lat = np.radians(lonlat[:, 1])
    cos_lat = np.cos(lat)
    return np.column_stack((cos_lat * np.cos(lon), cos_lat * np.sin(lon), np.sin(lat)))


# ═══════════════════════════════════════════════════════════════════════════
# 📏 SPHERICAL POINT-TO-SEGMENT KERNEL
# ═══════════════════════════════════════════════════════════════════════════


def point_segment_distances_km(
    points: np.ndarray,
    seg_starts: np.ndarray,
    seg_ends: np.ndarray,
    earth_radius_km: float = EARTH_RADIUS_KM,
) -> np.ndarray:
    """
    Great-circle distance from each point to each segment.

    Args:
        points: (m, 3) unit vectors
        seg_starts: (k, 3) unit vectors of segment starts
        seg_ends: (k, 3) unit vectors of segment ends
        earth_radius_km: Sphere radius

    Returns:
        (m, k) distances in km; NaN where the computation is undefined
    """
    with np.errstate(invalid="ignore", divide="ignore"):
        normals = np.cross(seg_starts, seg_ends)
        norms = np.linalg.norm(normals, axis=1)
        degenerate = ~(norms > _DEGENERATE_NORM)
        poles = normals / np.where(degenerate, 1.0, norms)[:, None]

        toward_end = np.cross(poles, seg_starts)
        toward_start = np.cross(seg_ends, poles)

        sin_cross = points @ poles.T
        inside = (points @ toward_end.T >= 0) & (points @ toward_start.T >= 0)
        inside &= ~degenerate[None, :]

        cross_track = np.arcsin(np.clip(np.abs(sin_cross), 0.0, 1.0))
        to_start = np.arccos(np.clip(points @ seg_starts.T, -1.0, 1.0))
        to_end = np.arccos(np.clip(points @ seg_ends.T, -1.0, 1.0))

        angles = np.where(inside, cross_track, np.fmin(to_start, to_end))
        # fmin hides a NaN endpoint; restore it so bad rows stay excluded
        invalid = np.isnan(sin_cross) | np.isnan(to_start) | np.isnan(to_end)
        angles[invalid] = np.nan

    return angles * earth_radius_km


def directional_min_km(
    vertices_lonlat: np.ndarray,
    seg_starts_lonlat: np.ndarray,
    seg_ends_lonlat: np.ndarray,
    earth_radius_km: float = EARTH_RADIUS_KM,
    chunk_size: int = 256,
) -> float:
    """
    Minimum distance from any vertex to any segment (one directional pass).

    Vertices are processed in blocks to bound memory on long borders.

    Returns:
        Minimum distance in km, or math.inf if no pair produced a finite value
    """
    if len(vertices_lonlat) == 0 or len(seg_starts_lonlat) == 0:
        return math.inf

    points = lonlat_to_unit_vectors(vertices_lonlat)
    starts = lonlat_to_unit_vectors(seg_starts_lonlat)
    ends = lonlat_to_unit_vectors(seg_ends_lonlat)

    n_segments = len(starts)
    rows = max(1, min(chunk_size, MAX_BLOCK_ELEMENTS // n_segments))

    best = math.inf
    for offset in range(0, len(points), rows):
        block = point_segment_distances_km(
            points[offset : offset + rows], starts, ends, earth_radius_km
        )
        finite = block[np.isfinite(block)]
        if finite.size:
            best = min(best, float(finite.min()))
            if best == 0.0:
                break
    return best


# ═══════════════════════════════════════════════════════════════════════════
# 🌍 REGION-TO-REGION DISTANCE
# ═══════════════════════════════════════════════════════════════════════════


def min_distance_km(
    geom_a: BaseGeometry,
    geom_b: BaseGeometry,
    earth_radius_km: float = EARTH_RADIUS_KM,
    chunk_size: int = 256,
    unknown_distance_km: float = UNKNOWN_DISTANCE_KM,
) -> float:
    """
    Minimum geodesic distance between two region geometries.

    Args:
        geom_a: Polygon or MultiPolygon (lon/lat degrees)
        geom_b: Polygon or MultiPolygon (lon/lat degrees)
        earth_radius_km: Sphere radius
        chunk_size: Vertices per numpy block
        unknown_distance_km: Returned when no point/segment pair is valid

    Returns:
        Distance in km (0.0 if the geometries intersect or touch)

    Example:
        >>> from shapely.geometry import box
        >>> min_distance_km(box(0, 0, 1, 1), box(1, 0, 2, 1))
        0.0
    """
    if geom_a.intersects(geom_b):
        return 0.0

    starts_b, ends_b = polygon_to_segments(geom_b)
    best = directional_min_km(
        explode_vertices(geom_a), starts_b, ends_b, earth_radius_km, chunk_size
    )
    if best == 0.0:
        return 0.0

    starts_a, ends_a = polygon_to_segments(geom_a)
    best = min(
        best,
        directional_min_km(
            explode_vertices(geom_b), starts_a, ends_a, earth_radius_km, chunk_size
        ),
    )

    if not math.isfinite(best):
        return unknown_distance_km
    return best


class PairwiseDistanceCalculator:
    """
    Configured distance calculator shared by the runtime cache and the
    offline generator.
    """

    def __init__(
        self,
        geodesy: Optional[GeodesyConfig] = None,
        unknown_distance_km: float = UNKNOWN_DISTANCE_KM,
    ) -> None:
        geodesy = geodesy or GeodesyConfig()
        self.earth_radius_km = geodesy.earth_radius_km
        self.chunk_size = geodesy.vertex_chunk_size
        self.unknown_distance_km = unknown_distance_km

    def distance(self, geom_a: BaseGeometry, geom_b: BaseGeometry) -> float:
        """Minimum distance in km between two geometries."""
        return min_distance_km(
            geom_a,
            geom_b,
            earth_radius_km=self.earth_radius_km,
            chunk_size=self.chunk_size,
            unknown_distance_km=self.unknown_distance_km,
        )
