"""Data models package for typed region, clue and matrix structures."""

from .data_models import (
    Region,
    Clue,
    DistanceMatrix,
    UNKNOWN_DISTANCE_KM,
    POLYGONAL_TYPES,
    resolve_region_id,
    regions_to_features,
)

__all__ = [
    "Region",
    "Clue",
    "DistanceMatrix",
    "UNKNOWN_DISTANCE_KM",
    "POLYGONAL_TYPES",
    "resolve_region_id",
    "regions_to_features",
]
