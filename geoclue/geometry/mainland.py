#!/usr/bin/env python3
"""
Mainland Geometry Normalizer

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Reduce a multi-part region (mainland + territories) to its
largest member polygon. Used when territory exclusion is requested.

Key Functions:
- mainland_polygon(): Largest-area member of a Polygon/MultiPolygon
- mainland(): Same, wrapped in a Region carrying the original attributes
- build_mainland_table(): region_id -> mainland side-table built at INIT

Area Ranking:
- Member areas are computed in an equal-area projection (EPSG:6933 by
  default) via geopandas, so high-latitude polygons are not inflated.
- Ties resolve to the first member in input order.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from typing import Dict, Iterable, List

import geopandas as gpd
import numpy as np
from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry

from geoclue.errors import InvalidRegionError
from geoclue.models import Region

logger = logging.getLogger("GeoClue.Geometry.Mainland")

DEFAULT_SOURCE_CRS = "EPSG:4326"
DEFAULT_AREA_CRS = "EPSG:6933"


# ═══════════════════════════════════════════════════════════════════════════
# 📐 AREA RANKING
# ═══════════════════════════════════════════════════════════════════════════


def projected_areas(
    polygons: List[Polygon],
    source_crs: str = DEFAULT_SOURCE_CRS,
    area_crs: str = DEFAULT_AREA_CRS,
) -> np.ndarray:
    """
    Planar areas of polygons after projection to an equal-area CRS.

    Args:
        polygons: Member polygons in source_crs coordinates
        source_crs: CRS of the input coordinates
        area_crs: Equal-area CRS used for measurement

    Returns:
        Array of areas (square meters for EPSG:6933), same order as input
    """
    series = gpd.GeoSeries(polygons, crs=source_crs)
    return series.to_crs(area_crs).area.to_numpy()


def mainland_polygon(
    geometry: BaseGeometry,
    source_crs: str = DEFAULT_SOURCE_CRS,
    area_crs: str = DEFAULT_AREA_CRS,
) -> Polygon:
    """
    Select the mainland polygon of a region geometry.

    Args:
        geometry: shapely Polygon or MultiPolygon
        source_crs: CRS of the input coordinates
        area_crs: Equal-area CRS used for ranking members

    Returns:
        The polygon itself, or the largest member of a MultiPolygon

    Raises:
        InvalidRegionError: Empty geometry, zero members or non-polygonal type
    """
    if geometry is None or geometry.is_empty:
        raise InvalidRegionError("Region geometry is empty")

    if geometry.geom_type == "Polygon":
        if geometry.area <= 0:
            raise InvalidRegionError("Polygon has zero area")
        return geometry

    if geometry.geom_type != "MultiPolygon":
        raise InvalidRegionError(
            f"Expected Polygon or MultiPolygon, got {geometry.geom_type}"
        )

    members = list(geometry.geoms)
    if not members:
        raise InvalidRegionError("MultiPolygon has zero member polygons")

    areas = projected_areas(members, source_crs, area_crs)
    # argmax returns the first index on ties
    best = int(np.argmax(areas))
    if not areas[best] > 0:
        raise InvalidRegionError("MultiPolygon has no member with positive area")
    return members[best]


def mainland(
    region: Region,
    source_crs: str = DEFAULT_SOURCE_CRS,
    area_crs: str = DEFAULT_AREA_CRS,
) -> Region:
    """Region copy whose geometry is the mainland polygon."""
    return region.with_geometry(mainland_polygon(region.geometry, source_crs, area_crs))


# ═══════════════════════════════════════════════════════════════════════════
# 🗂️ SIDE-TABLE
# ═══════════════════════════════════════════════════════════════════════════


def build_mainland_table(
    regions: Iterable[Region],
    source_crs: str = DEFAULT_SOURCE_CRS,
    area_crs: str = DEFAULT_AREA_CRS,
) -> Dict[str, Polygon]:
    """
    Build the region_id -> mainland polygon side-table.

    Invalid regions are skipped and logged; one bad region never aborts
    the batch.

    Args:
        regions: Loaded regions
        source_crs: CRS of the input coordinates
        area_crs: Equal-area CRS used for ranking members

    Returns:
        Dict mapping region_id to its mainland polygon
    """
    table: Dict[str, Polygon] = {}
    skipped = 0

    for region in regions:
        try:
            table[region.region_id] = mainland_polygon(
                region.geometry, source_crs, area_crs
            )
        except InvalidRegionError as e:
            skipped += 1
            logger.warning(f"⚠️ Skipping region {region.region_id}: {e}")

    if skipped:
        logger.info(f"   Mainland table: {len(table)} regions, {skipped} skipped")
    return table
