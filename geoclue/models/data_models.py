"""
Typed data models for regions, clues and distance matrices.

Architectural Overview:
=======================
This module contains immutable dataclasses that replace raw GeoJSON
feature dicts throughout the codebase. A Region is loaded once during
INIT and shared read-only between requests; derived geometry (mainland)
is kept in a side-table, never on the Region itself.

Key Interactions:
-----------------
- Input: engine.loader builds Region instances from GeoJSON features
- Output: to_feature() serialises back to GeoJSON for READY/RESULT messages
- Clue.from_dict() accepts the wire format {"country", "distance"}

Data Flow:
----------
1. INIT: FeatureCollection -> List[Region] (+ mainland side-table)
2. FILTER: [{"country", "distance"}] -> List[Clue]
3. RESULT: List[Region] -> List[GeoJSON Feature]
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Tuple

from shapely.geometry import mapping, shape
from shapely.geometry.base import BaseGeometry

from geoclue.config_types import RegionIdentityConfig


# ═══════════════════════════════════════════════════════════════════════════
# 🔢 CONSTANTS AND ALIASES
# ═══════════════════════════════════════════════════════════════════════════

# region_id -> region_id -> km (one decimal place in the artifact)
DistanceMatrix = Dict[str, Dict[str, float]]

# Stored when every point/segment computation for a pair failed
UNKNOWN_DISTANCE_KM = 99999.0

POLYGONAL_TYPES = ("Polygon", "MultiPolygon")


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ REGION IDENTITY
# ═══════════════════════════════════════════════════════════════════════════


def _first_property(
    properties: Dict[str, Any], keys: Tuple[str, ...], skip: Tuple[str, ...] = ()
) -> Optional[str]:
    for key in keys:
        value = properties.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text in skip:
            continue
        return text
    return None


def resolve_region_id(
    feature: Dict[str, Any], identity: Optional[RegionIdentityConfig] = None
) -> Optional[str]:
    """
    Determine the stable id of a GeoJSON feature.

    Order: first non-placeholder code property, then the feature's
    top-level "id", then the first name property.

    Args:
        feature: GeoJSON Feature dict
        identity: Property lookup rules (defaults if omitted)

    Returns:
        Region id, or None if the feature carries no usable identifier

    Example:
        >>> resolve_region_id({"properties": {"ISO_A3": "-99", "name": "France"}})
        'France'
    """
    identity = identity or RegionIdentityConfig()
    properties = feature.get("properties") or {}

    code = _first_property(
        properties, identity.id_properties, identity.placeholder_codes
    )
    if code is not None:
        return code

    feature_id = feature.get("id")
    if feature_id is not None and str(feature_id).strip() not in identity.placeholder_codes:
        return str(feature_id).strip()

    return _first_property(properties, identity.name_properties, ("",))


# ═══════════════════════════════════════════════════════════════════════════
# 🌍 REGION DATACLASS SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Region:
    """Immutable geographic unit (e.g. a country) with one or more polygons.

    Equality and hashing use region_id and name only, so regions can be
    placed in sets and compared across filter runs without touching the
    geometry.

    Attributes:
        region_id: Stable short code (falls back to display name)
        name: Display name
        geometry: shapely Polygon or MultiPolygon in lon/lat degrees
        properties: Original non-geometric feature attributes
    """

    region_id: str
    name: str
    geometry: BaseGeometry = field(compare=False, repr=False)
    properties: Dict[str, Any] = field(
        default_factory=dict, compare=False, repr=False
    )

    @property
    def is_multipart(self) -> bool:
        """True when the geometry has several member polygons (territories)."""
        return self.geometry.geom_type == "MultiPolygon"

    def with_geometry(self, geometry: BaseGeometry) -> "Region":
        """Copy of this region carrying a different geometry."""
        return Region(
            region_id=self.region_id,
            name=self.name,
            geometry=geometry,
            properties=self.properties,
        )

    def to_feature(self) -> Dict[str, Any]:
        """Serialise to a GeoJSON Feature dict."""
        return {
            "type": "Feature",
            "id": self.region_id,
            "properties": dict(self.properties),
            "geometry": mapping(self.geometry),
        }

    @classmethod
    def from_feature(
        cls,
        feature: Dict[str, Any],
        identity: Optional[RegionIdentityConfig] = None,
    ) -> "Region":
        """Create Region from a GeoJSON Feature dict.

        Raises:
            ValueError: If the feature has no identifier or no polygonal
                geometry
        """
        identity = identity or RegionIdentityConfig()
        region_id = resolve_region_id(feature, identity)
        if region_id is None:
            raise ValueError("Feature has no id, code or name property")

        geometry_dict = feature.get("geometry")
        if not geometry_dict or geometry_dict.get("type") not in POLYGONAL_TYPES:
            raise ValueError(
                f"Feature {region_id} has non-polygonal geometry: "
                f"{(geometry_dict or {}).get('type')}"
            )

        properties = dict(feature.get("properties") or {})
        name = _first_property(properties, identity.name_properties, ("",))
        return cls(
            region_id=region_id,
            name=name or region_id,
            geometry=shape(geometry_dict),
            properties=properties,
        )


def regions_to_features(regions: List[Region]) -> List[Dict[str, Any]]:
    """Serialise regions to a list of GeoJSON features."""
    return [region.to_feature() for region in regions]


# ═══════════════════════════════════════════════════════════════════════════
# 🧩 CLUE DATACLASS SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Clue:
    """A reference region and the declared distance to the unknown target."""

    region_id: str
    distance_km: float

    @classmethod
    def from_dict(
        cls, d: Dict[str, Any], identity: Optional[RegionIdentityConfig] = None
    ) -> "Clue":
        """Create Clue from the wire format {"country": ..., "distance": ...}.

        "country" may be a region id string or a full GeoJSON feature.

        Raises:
            ValueError: If the country or distance is missing or invalid
        """
        country = d.get("country")
        if isinstance(country, dict):
            region_id = resolve_region_id(country, identity)
        elif country is not None:
            region_id = str(country)
        else:
            region_id = None
        if not region_id:
            raise ValueError(f"Clue has no country: {d!r}")

        try:
            distance_km = float(d["distance"])
        except (KeyError, TypeError, ValueError):
            raise ValueError(f"Clue for {region_id} has no numeric distance")
        if not math.isfinite(distance_km) or distance_km < 0:
            raise ValueError(
                f"Clue for {region_id} has invalid distance {distance_km}"
            )
        return cls(region_id=region_id, distance_km=distance_km)
