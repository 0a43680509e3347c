#!/usr/bin/env python3
"""
Region Universe Loader

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn a GeoJSON FeatureCollection into the immutable region
universe plus its mainland side-table.

Key Features:
1. Load from URL (requests) or local path
2. Region identity resolution (code -> feature id -> name)
3. Per-feature validation: non-polygonal, empty or unnamed features are
   skipped and logged, never aborting the load
4. Mainland side-table built once; regions without a valid mainland are
   dropped from the universe

Navigation Guide:
- regions_from_feature_collection: FeatureCollection dict -> List[Region]
- load_regions: Source (URL/path) -> List[Region], raises DataLoadError
- prepare_universe: Regions -> (valid regions, mainland table)

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import requests
from shapely.errors import GEOSException
from shapely.geometry import Polygon

from geoclue.config_types import GeodesyConfig, RegionIdentityConfig
from geoclue.errors import DataLoadError
from geoclue.geometry.mainland import build_mainland_table
from geoclue.models import Region
from geoclue.sources import fetch_json

logger = logging.getLogger("GeoClue.Engine.Loader")


# ═══════════════════════════════════════════════════════════════════════════
# 📂 FEATURE PARSING
# ═══════════════════════════════════════════════════════════════════════════


def regions_from_feature_collection(
    data: Dict[str, Any], identity: Optional[RegionIdentityConfig] = None
) -> List[Region]:
    """
    Parse a GeoJSON FeatureCollection into regions.

    Args:
        data: Decoded FeatureCollection
        identity: Region identity rules

    Returns:
        Regions in input order; duplicates of an id keep the first feature

    Raises:
        DataLoadError: If data is not a FeatureCollection
    """
    if not isinstance(data, dict) or not isinstance(data.get("features"), list):
        raise DataLoadError("Map data is not a GeoJSON FeatureCollection")

    regions: List[Region] = []
    seen = set()

    for index, feature in enumerate(data["features"]):
        if not isinstance(feature, dict):
            logger.warning(f"⚠️ Feature {index}: not an object, skipped")
            continue
        try:
            region = Region.from_feature(feature, identity)
        except (ValueError, TypeError, IndexError, GEOSException) as e:
            logger.warning(f"⚠️ Feature {index}: {e}")
            continue

        if region.region_id in seen:
            logger.warning(f"⚠️ Duplicate region id {region.region_id}, skipped")
            continue
        seen.add(region.region_id)
        regions.append(region)

    return regions


def load_regions(
    source: Union[str, Path], identity: Optional[RegionIdentityConfig] = None
) -> List[Region]:
    """
    Fetch and parse the region geometry.

    Raises:
        DataLoadError: Fetch failure, invalid JSON or not a FeatureCollection
    """
    try:
        data = fetch_json(source)
    except (requests.RequestException, OSError, ValueError) as e:
        raise DataLoadError(f"Failed to load map data: {e}") from e

    regions = regions_from_feature_collection(data, identity)
    logger.info(f"   ✅ Loaded {len(regions)} regions from {source}")
    return regions


# ═══════════════════════════════════════════════════════════════════════════
# 🗂️ UNIVERSE PREPARATION
# ═══════════════════════════════════════════════════════════════════════════


def prepare_universe(
    regions: List[Region], geodesy: Optional[GeodesyConfig] = None
) -> Tuple[List[Region], Dict[str, Polygon]]:
    """
    Build the mainland side-table and drop regions without a mainland.

    Returns:
        Tuple of (regions with a valid mainland, mainland table)
    """
    geodesy = geodesy or GeodesyConfig()
    table = build_mainland_table(regions, geodesy.source_crs, geodesy.area_crs)
    valid = [region for region in regions if region.region_id in table]
    n_multipart = sum(1 for region in valid if region.is_multipart)
    logger.info(
        f"   🏝️ Mainland table: {len(valid)} regions, {n_multipart} with territories"
    )
    return valid, table
