"""
Region Distance Cache Module

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Resolve the distance between two loaded regions, using a
precomputed matrix where valid and memoising every answer for the rest of
the process lifetime.

Lookup Order (resolve):
1. Same region -> 0
2. Runtime memo, keyed by canonical pair key
3. Static matrix (territory-inclusive mode ONLY), both orientations
4. Dynamic computation (mainland or full geometry per mode), memoised

Key Insight: The same pair has two valid distances - mainland-only and
territory-inclusive - so the territory flag is part of the pair key. The
static matrix is always built from full geometry and is therefore never
consulted for mainland-only queries.

Key Functions:
- make_pair_key(): Order-independent pair key
- DistanceMatrixCache: Two-tier cache with resolve()
- DistanceCacheStats: Hit/miss accounting

Concurrency Model:
- Owned by the single engine worker thread; the memo is only written there
  and is append-only, so no lock is needed.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry

from geoclue.errors import UnknownRegionError
from geoclue.geometry.pairwise import PairwiseDistanceCalculator
from geoclue.models import DistanceMatrix, Region

logger = logging.getLogger("GeoClue.Cache.Distance")


# ═══════════════════════════════════════════════════════════════════════════
# 📊 CACHE STATISTICS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class DistanceCacheStats:
    """Statistics for distance cache performance tracking."""

    memo_hits: int = 0
    matrix_hits: int = 0
    computed: int = 0
    total_compute_time_s: float = 0.0

    def hit_rate(self) -> float:
        """Share of lookups answered without geometry work, as percentage."""
        total = self.memo_hits + self.matrix_hits + self.computed
        if total == 0:
            return 0.0
        return ((self.memo_hits + self.matrix_hits) / total) * 100.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert stats to dictionary for logging."""
        return {
            "memo_hits": self.memo_hits,
            "matrix_hits": self.matrix_hits,
            "computed": self.computed,
            "hit_rate_pct": round(self.hit_rate(), 1),
            "total_compute_time_s": round(self.total_compute_time_s, 2),
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🔑 CACHE KEY GENERATION
# ═══════════════════════════════════════════════════════════════════════════


def make_pair_key(id_a: str, id_b: str, include_territories: bool) -> str:
    """
    Canonical key for an unordered region pair in a given territory mode.

    Args:
        id_a: First region id
        id_b: Second region id
        include_territories: Territory mode flag

    Returns:
        "{min_id}|{max_id}|{0|1}"

    Example:
        >>> make_pair_key("FRA", "DEU", False)
        'DEU|FRA|0'
    """
    first, second = (id_a, id_b) if id_a <= id_b else (id_b, id_a)
    return f"{first}|{second}|{int(bool(include_territories))}"


def lookup_matrix(
    matrix: Optional[DistanceMatrix], id_a: str, id_b: str
) -> Optional[float]:
    """Look up a pair in the static matrix, trying both orientations."""
    if not matrix:
        return None
    row = matrix.get(id_a)
    if row is not None and id_b in row:
        return row[id_b]
    row = matrix.get(id_b)
    if row is not None and id_a in row:
        return row[id_a]
    return None


# ═══════════════════════════════════════════════════════════════════════════
# 🏗️ DISTANCE MATRIX CACHE
# ═══════════════════════════════════════════════════════════════════════════


class DistanceMatrixCache:
    """
    Two-tier distance cache: optional static matrix + runtime memo.

    Usage:
        cache = DistanceMatrixCache(regions, mainland_table, matrix)
        km = cache.resolve("FRA", "ESP", include_territories=True)
    """

    def __init__(
        self,
        regions: Iterable[Region],
        mainland_table: Mapping[str, Polygon],
        matrix: Optional[DistanceMatrix] = None,
        calculator: Optional[PairwiseDistanceCalculator] = None,
    ) -> None:
        """
        Initialize the cache.

        Args:
            regions: The loaded region universe
            mainland_table: region_id -> mainland polygon side-table
            matrix: Precomputed territory-inclusive matrix (optional)
            calculator: Distance calculator (default configuration if omitted)
        """
        self._geometries: Dict[str, BaseGeometry] = {
            region.region_id: region.geometry for region in regions
        }
        self._mainlands = mainland_table
        self._matrix = matrix
        self._calculator = calculator or PairwiseDistanceCalculator()
        self._memo: Dict[str, float] = {}
        self.stats = DistanceCacheStats()

    @property
    def has_matrix(self) -> bool:
        """True when a precomputed matrix is loaded."""
        return bool(self._matrix)

    def __len__(self) -> int:
        return len(self._memo)

    def _geometry_for(self, region_id: str, include_territories: bool) -> BaseGeometry:
        source = self._geometries if include_territories else self._mainlands
        try:
            return source[region_id]
        except KeyError:
            raise UnknownRegionError(f"Unknown region: {region_id}") from None

    def resolve(self, id_a: str, id_b: str, include_territories: bool) -> float:
        """
        Distance in km between two regions for the given territory mode.

        Args:
            id_a: First region id
            id_b: Second region id
            include_territories: False = mainland-only geometry

        Returns:
            Distance in km; resolve(A, B, f) == resolve(B, A, f)

        Raises:
            UnknownRegionError: If either id is not in the universe
        """
        if id_a == id_b:
            self._geometry_for(id_a, include_territories)
            return 0.0

        key = make_pair_key(id_a, id_b, include_territories)
        cached = self._memo.get(key)
        if cached is not None:
            self.stats.memo_hits += 1
            return cached

        if include_territories:
            stored = lookup_matrix(self._matrix, id_a, id_b)
            if stored is not None:
                self.stats.matrix_hits += 1
                self._memo[key] = stored
                return stored

        # Canonical orientation so the computed value never depends on
        # argument order
        first, second = sorted((id_a, id_b))
        geom_first = self._geometry_for(first, include_territories)
        geom_second = self._geometry_for(second, include_territories)

        t_start = time.perf_counter()
        distance = self._calculator.distance(geom_first, geom_second)
        elapsed = time.perf_counter() - t_start

        self.stats.computed += 1
        self.stats.total_compute_time_s += elapsed
        logger.debug(
            f"Computed {first}<->{second} "
            f"({'full' if include_territories else 'mainland'}): "
            f"{distance:.1f} km in {elapsed * 1000:.1f}ms"
        )

        self._memo[key] = distance
        return distance

    def get_stats(self) -> Dict[str, Any]:
        """Cache statistics as a dictionary."""
        stats = self.stats.to_dict()
        stats["memo_entries"] = len(self._memo)
        return stats
