#!/usr/bin/env python3
"""
Distance Matrix Generator

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Precompute the full region-to-region distance matrix offline
so the runtime engine can answer most territory-inclusive lookups without
geometry work.

Key Interactions:
- Input: Region list (full geometry, not mainland)
- Output: DistanceMatrix {id: {id: km}} written once via save_distance_matrix
- Uses: geometry.pairwise (distance), generator.matrix_worker (row blocks),
  joblib Parallel with delayed for process-based parallelism

Pipeline:
1. Simplify all geometries (preserve topology)
2. Compute forward pairs (i < j) per row block, in parallel or sequentially
3. Assemble rows in the parent: self = 0, lower triangle copied from the
   upper triangle

Step 2 only touches independent pairs; step 3 is always sequential, so the
parallel and sequential paths give identical matrices.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import geopandas as gpd

from geoclue.cache.matrix_io import save_distance_matrix
from geoclue.config_types import AppConfig, ParallelConfig
from geoclue.generator.matrix_worker import serialize_geometry, worker_compute_rows
from geoclue.models import DistanceMatrix, Region

logger = logging.getLogger("GeoClue.Generator")


# ═══════════════════════════════════════════════════════════════════════════
# ✂️ SIMPLIFICATION
# ═══════════════════════════════════════════════════════════════════════════


def simplify_regions(
    regions: Sequence[Region], tolerance_deg: float, source_crs: str = "EPSG:4326"
) -> List[Region]:
    """
    Simplify every region geometry with preserve_topology=True.

    A geometry that simplifies to empty keeps its original shape.

    Args:
        regions: Regions to simplify
        tolerance_deg: Simplification tolerance in degrees (0 disables)
        source_crs: CRS of the coordinates

    Returns:
        New list of regions (input is not modified)
    """
    if tolerance_deg <= 0 or not regions:
        return list(regions)

    series = gpd.GeoSeries([r.geometry for r in regions], crs=source_crs)
    simplified = series.simplify(tolerance_deg, preserve_topology=True)

    result = []
    for region, geom in zip(regions, simplified):
        if geom is None or geom.is_empty:
            logger.debug(f"   {region.region_id}: simplified to empty, kept original")
            result.append(region)
        else:
            result.append(region.with_geometry(geom))
    return result


# ═══════════════════════════════════════════════════════════════════════════
# 🔍 PARALLEL DECISION LOGIC
# ═══════════════════════════════════════════════════════════════════════════


def count_forward_pairs(n_regions: int) -> int:
    """Number of independent (i < j) pairs."""
    return n_regions * (n_regions - 1) // 2


def should_use_parallel(n_pairs: int, parallel: ParallelConfig) -> Tuple[bool, str]:
    """
    Determine if parallel processing should be used.

    Returns:
        Tuple of (should_use: bool, reason: str).
    """
    if not parallel.enabled:
        return False, "Parallel disabled in config"

    if n_pairs < parallel.min_pairs_for_parallel:
        return (
            False,
            f"Only {n_pairs} pairs (< {parallel.min_pairs_for_parallel} threshold)",
        )

    return True, f"OK ({n_pairs} pairs)"


def get_effective_worker_count(n_rows: int, parallel: ParallelConfig) -> int:
    """Worker count from config, capped at the number of rows."""
    max_workers = parallel.max_workers
    if max_workers == -1:
        # Auto-detect based on CPU cores
        cpu_count = os.cpu_count() or 4
        max_workers = min(cpu_count, parallel.optimal_workers_default)
    return max(1, min(max_workers, n_rows))


def split_rows(n_rows: int, n_blocks: int) -> List[List[int]]:
    """
    Round-robin row assignment.

    Row i has n - 1 - i forward pairs, so striding rows across blocks keeps
    the blocks roughly equal in work.

    Example:
        >>> split_rows(5, 2)
        [[0, 2, 4], [1, 3]]
    """
    n_blocks = max(1, min(n_blocks, n_rows))
    blocks = [list(range(k, n_rows, n_blocks)) for k in range(n_blocks)]
    return [block for block in blocks if block]


# ═══════════════════════════════════════════════════════════════════════════
# 📈 PROGRESS
# ═══════════════════════════════════════════════════════════════════════════


def _log_progress(
    rows_done: int, pairs_done: int, n_rows: int, n_pairs: int, t_start: float
) -> None:
    pct = 100.0 * pairs_done / n_pairs if n_pairs else 100.0
    logger.info(
        f"   📊 {rows_done}/{n_rows} rows, {pct:.1f}% of pairs "
        f"({time.perf_counter() - t_start:.1f}s elapsed)"
    )


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 DISPATCH
# ═══════════════════════════════════════════════════════════════════════════


def _worker_kwargs(
    region_ids: List[str], geometries_wkb: List[str], config: AppConfig
) -> Dict[str, Any]:
    return {
        "region_ids": region_ids,
        "geometries_wkb": geometries_wkb,
        "earth_radius_km": config.geodesy.earth_radius_km,
        "chunk_size": config.geodesy.vertex_chunk_size,
        "unknown_distance_km": config.matrix_generation.unknown_distance_km,
        "decimals": config.matrix_generation.decimals,
    }


def _run_sequential(
    rows: Sequence[int], worker_kwargs: Dict[str, Any], config: AppConfig
) -> List[Dict[str, Any]]:
    """Compute the given rows one at a time in this process."""
    n_rows = len(worker_kwargs["region_ids"])
    n_pairs = count_forward_pairs(n_rows)
    every = config.matrix_generation.progress_every
    t_start = time.perf_counter()

    results = []
    pairs_done = 0
    for done, i in enumerate(rows, start=1):
        result = worker_compute_rows(block_key=f"row{i}", rows=[i], **worker_kwargs)
        results.append(result)
        pairs_done += n_rows - 1 - i
        if every > 0 and done % every == 0:
            _log_progress(done, pairs_done, len(rows), n_pairs, t_start)
    return results


def _dispatch_parallel(
    worker_kwargs: Dict[str, Any], config: AppConfig
) -> List[Dict[str, Any]]:
    """
    Dispatch row blocks to joblib workers.

    Geometries are serialized ONCE before dispatch. On dispatch failure,
    falls back to sequential processing when fallback_on_error is set.
    """
    from joblib import Parallel, delayed

    parallel = config.parallel
    n_rows = len(worker_kwargs["region_ids"])
    n_pairs = count_forward_pairs(n_rows)
    n_workers = get_effective_worker_count(n_rows, parallel)
    blocks = split_rows(n_rows, n_workers * parallel.tasks_per_worker)

    logger.info(
        f"🚀 Dispatching {len(blocks)} row blocks to {n_workers} workers "
        f"(backend={parallel.backend})..."
    )

    try:
        dispatch_start = time.perf_counter()
        results = []
        rows_done = 0
        pairs_done = 0
        for result in Parallel(
            n_jobs=n_workers,
            backend=parallel.backend,
            verbose=parallel.verbose,
            return_as="generator",
        )(
            delayed(worker_compute_rows)(
                block_key=f"block{k}", rows=block, **worker_kwargs
            )
            for k, block in enumerate(blocks)
        ):
            results.append(result)
            rows_done += len(result["rows"])
            pairs_done += len(result["distances"])
            _log_progress(rows_done, pairs_done, n_rows, n_pairs, dispatch_start)

        logger.info(
            f"   ⏱️ Parallel dispatch completed in "
            f"{time.perf_counter() - dispatch_start:.1f}s"
        )
        return results

    except (ImportError, RuntimeError, OSError) as e:
        logger.warning(f"⚠️ Parallel dispatch failed: {e}")
        if not parallel.fallback_on_error:
            raise
        logger.info("📋 Falling back to sequential processing...")
        return _run_sequential(range(n_rows), worker_kwargs, config)


# ═══════════════════════════════════════════════════════════════════════════
# 🧩 ASSEMBLY
# ═══════════════════════════════════════════════════════════════════════════


def _collect_forward(
    results: List[Dict[str, Any]],
    worker_kwargs: Dict[str, Any],
    config: AppConfig,
) -> Dict[Tuple[int, int], float]:
    """
    Merge worker results into {(i, j): km}, recomputing failed blocks
    sequentially.
    """
    forward: Dict[Tuple[int, int], float] = {}
    retry_rows: List[int] = []

    for result in results:
        if not result["success"]:
            logger.warning(
                f"⚠️ Block {result['key']} failed ({result['error']}), "
                f"recomputing {len(result['rows'])} rows sequentially"
            )
            retry_rows.extend(result["rows"])
            continue
        for i, j, km in result["distances"]:
            forward[(i, j)] = km
        for id_a, id_b, message in result["pair_errors"]:
            logger.error(f"❌ Distance {id_a}|{id_b} failed, stored as unknown: {message}")

    if retry_rows:
        for result in _run_sequential(sorted(retry_rows), worker_kwargs, config):
            if not result["success"]:
                logger.error(f"❌ Rows {result['rows']} failed again: {result['error']}")
                continue
            for i, j, km in result["distances"]:
                forward[(i, j)] = km
            for id_a, id_b, message in result["pair_errors"]:
                logger.error(
                    f"❌ Distance {id_a}|{id_b} failed, stored as unknown: {message}"
                )

    return forward


def assemble_matrix(
    region_ids: Sequence[str],
    forward: Dict[Tuple[int, int], float],
    unknown_distance_km: float,
) -> DistanceMatrix:
    """
    Build the full symmetric matrix from forward (i < j) values.

    Self-pairs are 0.0; (j, i) is copied from (i, j). A forward pair that
    is still missing is stored as unknown_distance_km.
    """
    matrix: DistanceMatrix = {}
    for i, id_i in enumerate(region_ids):
        row: Dict[str, float] = {}
        for j, id_j in enumerate(region_ids):
            if i == j:
                row[id_j] = 0.0
            elif j < i:
                row[id_j] = matrix[id_j][id_i]
            else:
                row[id_j] = forward.get((i, j), unknown_distance_km)
        matrix[id_i] = row
    return matrix


# ═══════════════════════════════════════════════════════════════════════════
# 🎯 PUBLIC API
# ═══════════════════════════════════════════════════════════════════════════


def generate_distance_matrix(
    regions: Sequence[Region],
    config: Optional[AppConfig] = None,
    simplify: bool = True,
) -> DistanceMatrix:
    """
    Compute the full pairwise distance matrix.

    Args:
        regions: Regions with full (non-mainland) geometry
        config: AppConfig (defaults to module CONFIG)
        simplify: Simplify geometries first (matrix_generation tolerance)

    Returns:
        DistanceMatrix {id: {id: km}}, symmetric, rounded
    """
    config = config or AppConfig.default()
    t_start = time.perf_counter()
    n = len(regions)
    n_pairs = count_forward_pairs(n)
    logger.info(f"🧮 Generating distance matrix: {n} regions, {n_pairs} pairs")

    if simplify:
        tol = config.matrix_generation.simplify_tolerance_deg
        logger.info(f"   ✂️ Simplifying geometries (tolerance={tol}°)")
        regions = simplify_regions(regions, tol, config.geodesy.source_crs)

    region_ids = [r.region_id for r in regions]
    worker_kwargs = _worker_kwargs(
        region_ids, [serialize_geometry(r.geometry) for r in regions], config
    )

    use_parallel, reason = should_use_parallel(n_pairs, config.parallel)
    logger.info(f"   Parallel: {use_parallel} ({reason})")
    if use_parallel:
        results = _dispatch_parallel(worker_kwargs, config)
    else:
        results = _run_sequential(range(n), worker_kwargs, config)

    forward = _collect_forward(results, worker_kwargs, config)
    matrix = assemble_matrix(
        region_ids, forward, config.matrix_generation.unknown_distance_km
    )

    logger.info(
        f"   ✅ Matrix complete in {time.perf_counter() - t_start:.1f}s"
    )
    return matrix


def generate_and_save(
    regions: Sequence[Region],
    out_path: Union[str, Path],
    config: Optional[AppConfig] = None,
) -> Path:
    """Generate the matrix and write it once to out_path."""
    matrix = generate_distance_matrix(regions, config)
    path = save_distance_matrix(matrix, out_path)
    logger.info(f"💾 Saved {len(matrix)}x{len(matrix)} matrix to {path}")
    return path
