"""
GeoClue distance cache package.

Module Structure:
- distance_cache.py: Two-tier runtime cache (static matrix + memo)
- matrix_io.py: Matrix artifact load/save
"""

from geoclue.cache.distance_cache import (
    DistanceMatrixCache,
    DistanceCacheStats,
    lookup_matrix,
    make_pair_key,
)
from geoclue.cache.matrix_io import (
    load_distance_matrix,
    parse_distance_matrix,
    save_distance_matrix,
)

__all__ = [
    # Runtime cache
    "DistanceMatrixCache",
    "DistanceCacheStats",
    "lookup_matrix",
    "make_pair_key",
    # Artifact I/O
    "load_distance_matrix",
    "parse_distance_matrix",
    "save_distance_matrix",
]
