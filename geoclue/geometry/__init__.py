"""
Geometry package: mainland selection and pairwise region distances.
"""

from geoclue.geometry.mainland import (
    mainland,
    mainland_polygon,
    build_mainland_table,
    projected_areas,
)
from geoclue.geometry.pairwise import (
    EARTH_RADIUS_KM,
    PairwiseDistanceCalculator,
    directional_min_km,
    explode_vertices,
    min_distance_km,
    point_segment_distances_km,
    polygon_to_segments,
)

__all__ = [
    # Mainland
    "mainland",
    "mainland_polygon",
    "build_mainland_table",
    "projected_areas",
    # Pairwise distance
    "EARTH_RADIUS_KM",
    "PairwiseDistanceCalculator",
    "directional_min_km",
    "explode_vertices",
    "min_distance_km",
    "point_segment_distances_km",
    "polygon_to_segments",
]
