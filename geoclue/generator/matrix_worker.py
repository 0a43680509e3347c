"""
Worker function for computing a block of distance matrix rows.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Compute forward (upper-triangle) distances for a set of
matrix rows. THIN WRAPPER around geometry.pairwise.min_distance_km.

Follows the parallel worker conventions:
- Accept only primitive/serializable parameters (WKB hex geometries)
- Return dict with success/error status
- No business logic duplication
- Silent logging (no progress output to avoid interleaving)

The same function backs the sequential path, so parallel and sequential
runs produce identical values.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from shapely import wkb
from shapely.errors import GEOSException
from shapely.geometry.base import BaseGeometry

from geoclue.geometry.pairwise import min_distance_km


# ═══════════════════════════════════════════════════════════════════════════
# 📦 GEOMETRY SERIALIZATION
# ═══════════════════════════════════════════════════════════════════════════


def serialize_geometry(geom: Optional[BaseGeometry]) -> Optional[str]:
    """Serialize geometry to WKB hex (exact coordinates, cheap to pickle)."""
    if geom is None:
        return None
    return wkb.dumps(geom, hex=True)


def deserialize_geometry(wkb_hex: Optional[str]) -> Optional[BaseGeometry]:
    """Deserialize WKB hex back to a shapely geometry."""
    if wkb_hex is None:
        return None
    return wkb.loads(wkb_hex, hex=True)


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 WORKER LOGGING SETUP
# ═══════════════════════════════════════════════════════════════════════════


def _setup_worker_logging(block_key: str) -> logging.Logger:
    """Named logger for one row block (warnings only; workers stay quiet)."""
    logger = logging.getLogger(f"GeoClue.Worker.{block_key}")
    logger.setLevel(logging.WARNING)
    return logger


def _create_empty_result(block_key: str) -> Dict[str, Any]:
    return {
        "key": block_key,
        "success": False,
        "rows": [],
        "distances": [],
        "pair_errors": [],
        "duration_seconds": 0,
        "error": None,
    }


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 MAIN WORKER FUNCTION
# ═══════════════════════════════════════════════════════════════════════════


def worker_compute_rows(
    block_key: str,
    region_ids: Sequence[str],
    geometries_wkb: Sequence[str],
    rows: Sequence[int],
    earth_radius_km: float,
    chunk_size: int,
    unknown_distance_km: float,
    decimals: int,
) -> Dict[str, Any]:
    """
    Compute distances (i, j) for every i in rows and every j > i.

    A pair whose geometry computation fails is stored as
    unknown_distance_km and reported in pair_errors.

    Args:
        block_key: Identifier for this block (used in logger name)
        region_ids: All region ids, index-aligned with geometries_wkb
        geometries_wkb: All (simplified) geometries as WKB hex
        rows: Row indices this worker is responsible for
        earth_radius_km: Sphere radius
        chunk_size: Vertices per numpy block
        unknown_distance_km: Sentinel for failed pairs
        decimals: Rounding applied to stored values

    Returns:
        Dict with keys: key, success, rows, distances [(i, j, km)],
        pair_errors [(id_i, id_j, message)], duration_seconds, error
    """
    logger = _setup_worker_logging(block_key)
    result = _create_empty_result(block_key)
    result["rows"] = list(rows)
    start_time = time.time()

    try:
        geometries = [deserialize_geometry(g) for g in geometries_wkb]
        n = len(geometries)
        distances: List[tuple] = []
        pair_errors: List[tuple] = []

        for i in rows:
            for j in range(i + 1, n):
                try:
                    km = min_distance_km(
                        geometries[i],
                        geometries[j],
                        earth_radius_km=earth_radius_km,
                        chunk_size=chunk_size,
                        unknown_distance_km=unknown_distance_km,
                    )
                except (GEOSException, ValueError) as e:
                    logger.warning(
                        f"Pair {region_ids[i]}|{region_ids[j]} failed: {e}"
                    )
                    pair_errors.append((region_ids[i], region_ids[j], str(e)))
                    km = unknown_distance_km
                distances.append((i, j, round(km, decimals)))

        result["distances"] = distances
        result["pair_errors"] = pair_errors
        result["success"] = True

    except Exception as e:
        result["error"] = f"{type(e).__name__}: {e}"
        logger.error(f"Block {block_key} failed: {result['error']}")

    result["duration_seconds"] = time.time() - start_time
    return result
