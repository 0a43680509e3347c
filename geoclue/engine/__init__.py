"""
GeoClue engine package: request handling on a serialized worker.

Module Structure:
- loader.py: GeoJSON -> region universe + mainland side-table
- service.py: INIT / FILTER message handling
- worker.py: Single-consumer queue running the engine off-thread
"""

from geoclue.engine.loader import (
    load_regions,
    prepare_universe,
    regions_from_feature_collection,
)
from geoclue.engine.service import (
    EngineState,
    GeoClueEngine,
    MSG_ERROR,
    MSG_FILTER,
    MSG_INIT,
    MSG_READY,
    MSG_RESULT,
    error_response,
)
from geoclue.engine.worker import EngineWorker

__all__ = [
    # Loading
    "load_regions",
    "prepare_universe",
    "regions_from_feature_collection",
    # Engine
    "EngineState",
    "GeoClueEngine",
    "error_response",
    "MSG_ERROR",
    "MSG_FILTER",
    "MSG_INIT",
    "MSG_READY",
    "MSG_RESULT",
    # Worker
    "EngineWorker",
]
