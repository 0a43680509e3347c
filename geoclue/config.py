#!/usr/bin/env python3
"""
GeoClue - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized configuration for the distance-clue solver.
Single source of truth for tolerances, geodesy constants, region identity
rules, offline matrix generation, parallel dispatch, file paths and the
HTTP host.

Configuration Sections (ordered by importance for algorithm tuning):
1. tolerance: Clue matching tolerance (floor + fraction of declared distance)
2. matrix_generation: Offline matrix simplification and progress settings
3. geodesy: Earth radius, equal-area CRS, vertex chunk size
4. regions: Which feature properties identify a region
5. parallel: Joblib settings for the offline generator
6. file_paths: Input/output file locations (bottom - rarely changed)
7. server: HTTP host settings (bottom)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import os
from typing import Dict, Any, TypeVar, Callable, Optional

T = TypeVar("T")


def _env_or_default(
    key: str, default: T, type_fn: Optional[Callable[[str], T]] = None
) -> T:
    """
    Get value from environment variable or use default.

    Args:
        key: Environment variable name (e.g., "GEOCLUE_TOLERANCE_FLOOR_KM")
        default: Default value if env var not set
        type_fn: Optional type conversion function (e.g., float, int)

    Returns:
        Value from environment (converted) or default

    Example:
        >>> _env_or_default("GEOCLUE_TOLERANCE_FLOOR_KM", 50.0, float)
        50.0  # If env var not set
    """
    val = os.getenv(key)
    if val is not None:
        if type_fn is not None:
            return type_fn(val)
        return val  # type: ignore
    return default


def _env_bool(key: str, default: bool) -> bool:
    """
    Get boolean value from environment variable.

    Treats "true", "1", "yes" as True (case-insensitive).
    Any other value or unset returns default.
    """
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 ENVIRONMENT VARIABLE OVERRIDES
# ═══════════════════════════════════════════════════════════════════════════
# These settings can be overridden via environment variables:
#
# GEOCLUE_TOLERANCE_FLOOR_KM    - float, minimum clue tolerance (default: 50.0)
# GEOCLUE_TOLERANCE_FRACTION    - float, relative clue tolerance (default: 0.05)
# GEOCLUE_SIMPLIFY_TOLERANCE    - float, degrees of simplification (default: 0.15)
# GEOCLUE_PARALLEL_ENABLED      - "true" or "false" (default: "true")
# GEOCLUE_MAX_WORKERS           - int, -1 = auto (default: -1)
# GEOCLUE_SERVER_PORT           - int (default: 5052)
#
# Example usage:
#   export GEOCLUE_SIMPLIFY_TOLERANCE=0.05
#   export GEOCLUE_MAX_WORKERS=4
#   python -m geoclue.generate_distances --world public/world.geojson
# ═══════════════════════════════════════════════════════════════════════════

# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ MASTER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

CONFIG: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 🎯 CLUE TOLERANCE (High visibility - empirically chosen)
    # ═══════════════════════════════════════════════════════════════════════
    # tolerance(d) = max(floor_km, d * fraction)
    #
    # The floor absorbs simplification and geodesic-approximation error for
    # short distances; the fraction takes over above 1000 km.
    # A declared distance of exactly 0 is always a hard constraint.
    "tolerance": {
        # ENV OVERRIDE: GEOCLUE_TOLERANCE_FLOOR_KM (float, default: 50.0)
        "floor_km": _env_or_default("GEOCLUE_TOLERANCE_FLOOR_KM", 50.0, float),
        # ENV OVERRIDE: GEOCLUE_TOLERANCE_FRACTION (float, default: 0.05)
        "fraction": _env_or_default("GEOCLUE_TOLERANCE_FRACTION", 0.05, float),
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🧮 OFFLINE MATRIX GENERATION
    # ═══════════════════════════════════════════════════════════════════════
    # The O(n²) pairwise loop runs on simplified geometry.
    #
    # simplify_tolerance_deg (coordinate units = degrees):
    #   - 0.05: ~5km detail kept - slow, closer to true borders
    #   - 0.15: ~16km detail kept - RECOMMENDED
    #   - 0.50: ~55km - fast, small islands may collapse
    "matrix_generation": {
        # ENV OVERRIDE: GEOCLUE_SIMPLIFY_TOLERANCE (float, default: 0.15)
        "simplify_tolerance_deg": _env_or_default(
            "GEOCLUE_SIMPLIFY_TOLERANCE", 0.15, float
        ),
        # Log progress every N rows of the matrix
        "progress_every": 10,
        # Decimal places stored in the artifact
        "decimals": 1,
        # Stored when every point/segment computation for a pair fails
        "unknown_distance_km": 99999.0,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🌍 GEODESY
    # ═══════════════════════════════════════════════════════════════════════
    "geodesy": {
        # Mean Earth radius (km) used for great-circle distances
        "earth_radius_km": 6371.0088,
        # Equal-area CRS used to rank member polygons by area (mainland)
        "area_crs": "EPSG:6933",
        # Source CRS of input GeoJSON
        "source_crs": "EPSG:4326",
        # Vertices evaluated per numpy block (bounds memory for big borders)
        "vertex_chunk_size": 256,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🏷️ REGION IDENTITY
    # ═══════════════════════════════════════════════════════════════════════
    # Region id = first code property that is not a placeholder, then the
    # feature id, then the first name property.
    "regions": {
        "id_properties": ["ISO_A3", "iso_a3", "ADM0_A3"],
        "name_properties": ["name", "NAME", "ADMIN"],
        "placeholder_codes": ["-99", ""],
    },
    # ═══════════════════════════════════════════════════════════════════════
    # ⚡ PARALLEL PROCESSING (offline generator only)
    # ═══════════════════════════════════════════════════════════════════════
    "parallel": {
        # ENV OVERRIDE: GEOCLUE_PARALLEL_ENABLED (bool, default: true)
        "enabled": _env_bool("GEOCLUE_PARALLEL_ENABLED", True),
        # -1 = auto-detect (min(cpu_count, optimal_workers_default))
        # ENV OVERRIDE: GEOCLUE_MAX_WORKERS (int, default: -1)
        "max_workers": _env_or_default("GEOCLUE_MAX_WORKERS", -1, int),
        "optimal_workers_default": 8,
        # Below this many pairs the sequential loop is faster than dispatch
        "min_pairs_for_parallel": 500,
        # Row blocks dispatched per worker (round-robin for balance)
        "tasks_per_worker": 4,
        "fallback_on_error": True,
        "backend": "loky",
        "verbose": 0,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📁 FILE PATHS (Rarely changed - at bottom)
    # ═══════════════════════════════════════════════════════════════════════
    "file_paths": {
        "world_geojson": "public/world.geojson",
        "distances_json": "public/distances.json",
        "log_dir": "logs",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🌐 HTTP HOST (Rarely changed - at bottom)
    # ═══════════════════════════════════════════════════════════════════════
    "server": {
        "host": "127.0.0.1",
        # ENV OVERRIDE: GEOCLUE_SERVER_PORT (int, default: 5052)
        "port": _env_or_default("GEOCLUE_SERVER_PORT", 5052, int),
    },
}
