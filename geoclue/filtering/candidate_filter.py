"""
Candidate Filter

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Reduce the region universe to the regions consistent with
every distance clue.

Matching Rule:
- tolerance(d) = max(floor_km, d * fraction)  (defaults: 50 km, 5%)
- A clue with d == 0 is a hard constraint: computed distance must be
  exactly 0 (same region, overlapping or bordering).
- Otherwise |resolve(candidate, clue) - d| <= tolerance(d).

Properties:
- Empty clue list returns the full universe, unfiltered.
- Pure and idempotent given a deterministic resolver; universe order is
  preserved in the result.
- Adding a clue never grows the candidate set.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from typing import List, Optional, Protocol, Sequence

from geoclue.config_types import ToleranceConfig
from geoclue.models import Clue, Region

logger = logging.getLogger("GeoClue.Filter")


class DistanceResolver(Protocol):
    """Anything that can resolve a region-pair distance (e.g. the cache)."""

    def resolve(self, id_a: str, id_b: str, include_territories: bool) -> float:
        ...


# ═══════════════════════════════════════════════════════════════════════════
# 🎯 TOLERANCE
# ═══════════════════════════════════════════════════════════════════════════


def tolerance_km(
    declared_km: float, tolerance: Optional[ToleranceConfig] = None
) -> float:
    """
    Allowed absolute error for a declared clue distance.

    Example:
        >>> tolerance_km(1000.0)
        50.0
        >>> tolerance_km(4000.0)
        200.0
    """
    tolerance = tolerance or ToleranceConfig()
    return max(tolerance.floor_km, declared_km * tolerance.fraction)


def clue_satisfied(
    computed_km: float,
    declared_km: float,
    tolerance: Optional[ToleranceConfig] = None,
) -> bool:
    """True if a computed distance is consistent with a declared one."""
    if declared_km == 0:
        return computed_km == 0
    return abs(computed_km - declared_km) <= tolerance_km(declared_km, tolerance)


# ═══════════════════════════════════════════════════════════════════════════
# 🔍 FILTER
# ═══════════════════════════════════════════════════════════════════════════


def filter_candidates(
    regions: Sequence[Region],
    clues: Sequence[Clue],
    include_territories: bool,
    resolver: DistanceResolver,
    tolerance: Optional[ToleranceConfig] = None,
) -> List[Region]:
    """
    Regions consistent with every clue.

    Args:
        regions: The full region universe
        clues: Active clues (order irrelevant)
        include_territories: False = mainland-only distances
        resolver: Distance resolver (normally DistanceMatrixCache)
        tolerance: Tolerance configuration (defaults if omitted)

    Returns:
        Matching regions in universe order

    Raises:
        UnknownRegionError: If a clue references a region not in the universe
    """
    if not clues:
        return list(regions)

    tolerance = tolerance or ToleranceConfig()
    candidates = [
        region
        for region in regions
        if all(
            clue_satisfied(
                resolver.resolve(
                    region.region_id, clue.region_id, include_territories
                ),
                clue.distance_km,
                tolerance,
            )
            for clue in clues
        )
    ]

    logger.info(
        f"🔍 {len(candidates)}/{len(regions)} candidates for {len(clues)} clue(s) "
        f"({'with' if include_territories else 'without'} territories)"
    )
    return candidates
