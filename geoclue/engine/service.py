#!/usr/bin/env python3
"""
GeoClue Engine - Request Handling

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Hold the loaded region universe and answer INIT / FILTER
requests with structured response messages.

Protocol:
- {"type": "INIT", "payload": {"worldUrl", "distancesUrl"}}
    -> {"type": "READY", "countries": FeatureCollection}
- {"type": "FILTER", "payload": {"clues": [{"country", "distance"}],
                                  "includeTerritories": bool}}
    -> {"type": "RESULT", "candidates": [Feature, ...]}
- Any failure -> {"type": "ERROR", "error": message}

State Model:
- EngineState (universe, mainland table, matrix, cache) is swapped in only
  after a fully successful INIT; a failed INIT leaves the previous state.
- Universe, mainland table and matrix are immutable after INIT; the cache
  memo is append-only.
- Not thread-safe by itself: EngineWorker serialises all calls.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from shapely.geometry import Polygon

from geoclue.cache import DistanceMatrixCache, load_distance_matrix
from geoclue.config_types import AppConfig
from geoclue.engine.loader import load_regions, prepare_universe
from geoclue.errors import (
    EngineNotReadyError,
    GeoClueError,
    UnknownRegionError,
)
from geoclue.filtering import filter_candidates
from geoclue.geometry.pairwise import PairwiseDistanceCalculator
from geoclue.models import Clue, DistanceMatrix, Region, regions_to_features

logger = logging.getLogger("GeoClue.Engine")

# ═══════════════════════════════════════════════════════════════════════════
# 📨 MESSAGE TYPES
# ═══════════════════════════════════════════════════════════════════════════

MSG_INIT = "INIT"
MSG_FILTER = "FILTER"
MSG_READY = "READY"
MSG_RESULT = "RESULT"
MSG_ERROR = "ERROR"


def error_response(message: str) -> Dict[str, Any]:
    """Build an ERROR response message."""
    return {"type": MSG_ERROR, "error": message}


# ═══════════════════════════════════════════════════════════════════════════
# 🗄️ ENGINE STATE
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class EngineState:
    """Everything produced by a successful INIT."""

    regions: Sequence[Region]
    region_ids: frozenset
    mainland_table: Dict[str, Polygon]
    matrix: Optional[DistanceMatrix]
    cache: DistanceMatrixCache

    def feature_collection(self) -> Dict[str, Any]:
        """Loaded universe as a GeoJSON FeatureCollection."""
        return {
            "type": "FeatureCollection",
            "features": regions_to_features(list(self.regions)),
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 ENGINE
# ═══════════════════════════════════════════════════════════════════════════


class GeoClueEngine:
    """
    Distance-clue solver engine.

    Usage:
        engine = GeoClueEngine(AppConfig.default())
        engine.handle({"type": "INIT", "payload": {"worldUrl": "world.geojson"}})
        engine.handle({"type": "FILTER", "payload": {"clues": [...]}})
    """

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        self.config = config or AppConfig.default()
        self._state: Optional[EngineState] = None

    @property
    def is_ready(self) -> bool:
        """True after a successful INIT."""
        return self._state is not None

    @property
    def state(self) -> EngineState:
        """Current state; raises EngineNotReadyError before INIT."""
        if self._state is None:
            raise EngineNotReadyError()
        return self._state

    # ═══════════════════════════════════════════════════════════════════════
    # 📂 INIT
    # ═══════════════════════════════════════════════════════════════════════

    def initialize(
        self, world_url: str, distances_url: Optional[str] = None
    ) -> EngineState:
        """
        Load the region universe and (best-effort) the distance matrix.

        Args:
            world_url: URL or path of the region FeatureCollection
            distances_url: URL or path of the matrix artifact (optional)

        Returns:
            The new EngineState

        Raises:
            DataLoadError: If the geometry cannot be loaded
        """
        t_start = time.perf_counter()
        logger.info(f"🚀 INIT: world={world_url} distances={distances_url}")

        regions = load_regions(world_url, self.config.regions)
        regions, mainland_table = prepare_universe(regions, self.config.geodesy)
        matrix = load_distance_matrix(distances_url)

        calculator = PairwiseDistanceCalculator(
            self.config.geodesy, self.config.matrix_generation.unknown_distance_km
        )
        state = EngineState(
            regions=tuple(regions),
            region_ids=frozenset(region.region_id for region in regions),
            mainland_table=mainland_table,
            matrix=matrix,
            cache=DistanceMatrixCache(regions, mainland_table, matrix, calculator),
        )
        self._state = state

        logger.info(
            f"   ✅ Ready: {len(regions)} regions, "
            f"matrix={'yes' if matrix else 'no'} "
            f"({time.perf_counter() - t_start:.1f}s)"
        )
        return state

    # ═══════════════════════════════════════════════════════════════════════
    # 🔍 FILTER
    # ═══════════════════════════════════════════════════════════════════════

    def parse_clues(self, raw_clues: Any) -> List[Clue]:
        """
        Parse wire-format clues and check they reference loaded regions.

        Raises:
            ValueError: Malformed clue list
            UnknownRegionError: Clue references a region not in the universe
        """
        if raw_clues is None:
            return []
        if not isinstance(raw_clues, list):
            raise ValueError("clues must be a list")

        clues = []
        for raw in raw_clues:
            if not isinstance(raw, dict):
                raise ValueError(f"Clue must be an object: {raw!r}")
            clue = Clue.from_dict(raw, self.config.regions)
            if clue.region_id not in self.state.region_ids:
                raise UnknownRegionError(f"Unknown region: {clue.region_id}")
            clues.append(clue)
        return clues

    def filter(
        self, clues: Sequence[Clue], include_territories: bool = False
    ) -> List[Region]:
        """
        Regions consistent with every clue.

        Raises:
            EngineNotReadyError: Before a successful INIT
        """
        state = self.state
        t_start = time.perf_counter()
        candidates = filter_candidates(
            state.regions,
            clues,
            include_territories,
            state.cache,
            self.config.tolerance,
        )
        logger.debug(
            f"   FILTER took {(time.perf_counter() - t_start) * 1000:.1f}ms, "
            f"cache={state.cache.get_stats()}"
        )
        return candidates

    # ═══════════════════════════════════════════════════════════════════════
    # 📨 MESSAGE DISPATCH
    # ═══════════════════════════════════════════════════════════════════════

    def handle(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """
        Answer one request message. Never raises for request-level errors.

        Args:
            message: {"type": "INIT" | "FILTER", "payload": {...}}

        Returns:
            READY, RESULT or ERROR response message
        """
        if not isinstance(message, dict):
            return error_response("Message must be an object")

        msg_type = message.get("type")
        payload = message.get("payload") or {}
        if not isinstance(payload, dict):
            return error_response("payload must be an object")

        if msg_type == MSG_INIT:
            return self._handle_init(payload)
        if msg_type == MSG_FILTER:
            return self._handle_filter(payload)
        return error_response(f"Unknown message type: {msg_type}")

    def _handle_init(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        world_url = payload.get("worldUrl") or self.config.file_paths.world_geojson
        distances_url = payload.get("distancesUrl")
        try:
            state = self.initialize(world_url, distances_url)
        except GeoClueError as e:
            logger.error(f"❌ INIT failed: {e}")
            return error_response(str(e))
        return {"type": MSG_READY, "countries": state.feature_collection()}

    def _handle_filter(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.is_ready:
            return error_response(str(EngineNotReadyError()))
        try:
            clues = self.parse_clues(payload.get("clues"))
            include_territories = bool(payload.get("includeTerritories", False))
            candidates = self.filter(clues, include_territories)
        except (GeoClueError, ValueError) as e:
            logger.warning(f"⚠️ FILTER rejected: {e}")
            return error_response(str(e))
        return {"type": MSG_RESULT, "candidates": regions_to_features(candidates)}
