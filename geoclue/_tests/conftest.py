"""
Shared fixtures for GeoClue tests.

Geometry layout (lon/lat degrees, all near the equator):
- AAA: unit box at (0, 0)
- BBB: unit box at (1, 0), shares an edge with AAA
- CCC: unit box at (10, 0), ~1000 km east of AAA
- DDD: large box at (20, 0) plus a small island at (40, 0)
"""

import json
from typing import Any, Dict, List

import pytest
from shapely.geometry import MultiPolygon, box, mapping

from geoclue.config_types import AppConfig, ParallelConfig
from geoclue.models import Region


def _feature(code: str, name: str, geometry) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "properties": {"ISO_A3": code, "name": name},
        "geometry": mapping(geometry),
    }


@pytest.fixture
def world_features() -> List[Dict[str, Any]]:
    return [
        _feature("AAA", "Alpha", box(0, 0, 1, 1)),
        _feature("BBB", "Bravo", box(1, 0, 2, 1)),
        _feature("CCC", "Charlie", box(10, 0, 11, 1)),
        _feature(
            "DDD",
            "Delta",
            MultiPolygon([box(20, 0, 25, 5), box(40, 0, 40.5, 0.5)]),
        ),
    ]


@pytest.fixture
def world_collection(world_features) -> Dict[str, Any]:
    return {"type": "FeatureCollection", "features": world_features}


@pytest.fixture
def world_path(tmp_path, world_collection):
    """World FeatureCollection written to a temporary GeoJSON file."""
    path = tmp_path / "world.geojson"
    path.write_text(json.dumps(world_collection), encoding="utf-8")
    return path


@pytest.fixture
def regions(world_features) -> List[Region]:
    return [Region.from_feature(f) for f in world_features]


@pytest.fixture
def sequential_config() -> AppConfig:
    """AppConfig with parallel dispatch disabled."""
    return AppConfig(parallel=ParallelConfig(enabled=False))
