"""
GeoClue

Distance-clue region solver: narrows a universe of map regions down to the
ones consistent with every "region X is D km away" clue.
"""

from geoclue.config import CONFIG
from geoclue.engine import GeoClueEngine, EngineWorker
from geoclue.generator import generate_distance_matrix

__all__ = ["GeoClueEngine", "EngineWorker", "generate_distance_matrix", "CONFIG"]
