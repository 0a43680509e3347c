"""
Distance Matrix Artifact I/O

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Read and write the precomputed distance matrix artifact.

Artifact Format:
- JSON object: region_id -> {region_id -> km}, one decimal place
- Either orientation of a pair satisfies a lookup; self-entries optional
- Written compactly (no whitespace), once, at the end of generation

Key Functions:
- load_distance_matrix(): Best-effort load (None on any failure)
- parse_distance_matrix(): Validate a decoded JSON value
- save_distance_matrix(): Atomic write under a file lock

Concurrency Model:
- save uses filelock so two generator runs targeting the same artifact
  never interleave; the file is replaced atomically via os.replace.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import json
import logging
import math
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

import filelock
import requests

from geoclue.models import DistanceMatrix
from geoclue.sources import fetch_json

logger = logging.getLogger("GeoClue.Cache.MatrixIO")

LOCK_TIMEOUT_S = 60


# ═══════════════════════════════════════════════════════════════════════════
# 📖 LOADING
# ═══════════════════════════════════════════════════════════════════════════


def parse_distance_matrix(data: Any) -> DistanceMatrix:
    """
    Validate a decoded artifact and coerce values to float.

    Rows that are not objects and values that are not finite non-negative
    numbers are dropped with a warning.

    Raises:
        ValueError: If the top-level value is not a JSON object
    """
    if not isinstance(data, dict):
        raise ValueError(
            f"Distance matrix must be a JSON object, got {type(data).__name__}"
        )

    matrix: DistanceMatrix = {}
    dropped = 0
    for id_a, row in data.items():
        if not isinstance(row, dict):
            dropped += 1
            continue
        clean_row = {}
        for id_b, value in row.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                dropped += 1
                continue
            km = float(value)
            if not math.isfinite(km) or km < 0:
                dropped += 1
                continue
            clean_row[str(id_b)] = km
        matrix[str(id_a)] = clean_row

    if dropped:
        logger.warning(f"⚠️ Distance matrix: dropped {dropped} invalid entries")
    return matrix


def load_distance_matrix(
    source: Optional[Union[str, Path]],
) -> Optional[DistanceMatrix]:
    """
    Load the precomputed matrix. Never raises.

    A missing, unreachable or unparsable artifact is logged and None is
    returned so the engine can continue in fully dynamic mode.

    Args:
        source: URL or path of the artifact (None = no matrix)

    Returns:
        DistanceMatrix or None
    """
    if not source:
        logger.info("   No distance matrix configured - dynamic mode")
        return None

    try:
        matrix = parse_distance_matrix(fetch_json(source))
    except (requests.RequestException, OSError, ValueError) as e:
        logger.warning(f"⚠️ Distance matrix unavailable ({source}): {e}")
        logger.info("   Falling back to dynamic distance computation")
        return None

    n_entries = sum(len(row) for row in matrix.values())
    logger.info(f"   ✅ Distance matrix: {len(matrix)} rows, {n_entries} entries")
    return matrix


# ═══════════════════════════════════════════════════════════════════════════
# 💾 SAVING
# ═══════════════════════════════════════════════════════════════════════════


def save_distance_matrix(matrix: DistanceMatrix, path: Union[str, Path]) -> Path:
    """
    Write the artifact atomically.

    Args:
        matrix: Complete distance matrix
        path: Output file path

    Returns:
        Path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    lock = filelock.FileLock(str(path) + ".lock", timeout=LOCK_TIMEOUT_S)

    with lock:
        fd, tmp_name = tempfile.mkstemp(
            prefix=path.name + ".", suffix=".tmp", dir=str(path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(matrix, f, separators=(",", ":"))
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    logger.info(f"💾 Written distances to {path}")
    return path
