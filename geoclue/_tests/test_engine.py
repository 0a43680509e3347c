"""
Tests for the INIT / FILTER engine protocol and the serialized worker.

Run with: python -m pytest geoclue/_tests/test_engine.py -v
"""

import threading
import time

import pytest

from geoclue.cache import save_distance_matrix
from geoclue.engine import (
    EngineWorker,
    GeoClueEngine,
    MSG_ERROR,
    MSG_FILTER,
    MSG_INIT,
    MSG_READY,
    MSG_RESULT,
)
from geoclue.errors import EngineNotReadyError, UnknownRegionError


def _init(world, distances=None):
    payload = {"worldUrl": str(world)}
    if distances is not None:
        payload["distancesUrl"] = str(distances)
    return {"type": MSG_INIT, "payload": payload}


def _filter(clues, include_territories=False):
    return {
        "type": MSG_FILTER,
        "payload": {"clues": clues, "includeTerritories": include_territories},
    }


def _ids(response):
    return [f["id"] for f in response["candidates"]]


@pytest.fixture
def engine(sequential_config):
    return GeoClueEngine(sequential_config)


@pytest.fixture
def ready_engine(engine, world_path):
    response = engine.handle(_init(world_path))
    assert response["type"] == MSG_READY
    return engine


class TestInit:
    """INIT message handling."""

    def test_ready_with_feature_collection(self, engine, world_path):
        response = engine.handle(_init(world_path))
        assert response["type"] == MSG_READY
        countries = response["countries"]
        assert countries["type"] == "FeatureCollection"
        assert [f["id"] for f in countries["features"]] == ["AAA", "BBB", "CCC", "DDD"]
        assert engine.is_ready

    def test_missing_matrix_is_not_fatal(self, engine, world_path, tmp_path):
        response = engine.handle(_init(world_path, tmp_path / "missing.json"))
        assert response["type"] == MSG_READY
        assert engine.state.matrix is None

    def test_matrix_loaded(self, engine, world_path, tmp_path):
        path = save_distance_matrix({"AAA": {"CCC": 1000.0}}, tmp_path / "d.json")
        engine.handle(_init(world_path, path))
        assert engine.state.cache.has_matrix

    def test_bad_world_source_is_error(self, engine, tmp_path):
        response = engine.handle(_init(tmp_path / "nope.geojson"))
        assert response["type"] == MSG_ERROR
        assert "Failed to load map data" in response["error"]
        assert not engine.is_ready

    def test_failed_reinit_keeps_previous_state(self, ready_engine, tmp_path):
        before = ready_engine.state
        response = ready_engine.handle(_init(tmp_path / "nope.geojson"))
        assert response["type"] == MSG_ERROR
        assert ready_engine.state is before

    def test_not_a_feature_collection(self, engine, tmp_path):
        path = tmp_path / "bad.geojson"
        path.write_text('{"type": "Feature"}', encoding="utf-8")
        assert engine.handle(_init(path))["type"] == MSG_ERROR


class TestFilter:
    """FILTER message handling."""

    def test_filter_before_init(self, engine):
        response = engine.handle(_filter([{"country": "AAA", "distance": 0}]))
        assert response == {"type": MSG_ERROR, "error": "Data not loaded"}

    def test_state_before_init_raises(self, engine):
        with pytest.raises(EngineNotReadyError):
            engine.state

    def test_empty_clues_return_universe(self, ready_engine):
        response = ready_engine.handle(_filter([]))
        assert response["type"] == MSG_RESULT
        assert _ids(response) == ["AAA", "BBB", "CCC", "DDD"]

    def test_zero_distance_clue(self, ready_engine):
        response = ready_engine.handle(_filter([{"country": "AAA", "distance": 0}]))
        assert _ids(response) == ["AAA", "BBB"]

    def test_distance_clue(self, ready_engine):
        response = ready_engine.handle(_filter([{"country": "CCC", "distance": 1000}]))
        # AAA and DDD are both 9 degrees from CCC, BBB only 8
        assert _ids(response) == ["AAA", "DDD"]

    def test_country_as_feature(self, ready_engine, world_features):
        response = ready_engine.handle(
            _filter([{"country": world_features[0], "distance": 0}])
        )
        assert _ids(response) == ["AAA", "BBB"]

    def test_unknown_region_is_error_and_engine_survives(self, ready_engine):
        response = ready_engine.handle(_filter([{"country": "XYZ", "distance": 10}]))
        assert response["type"] == MSG_ERROR
        assert "XYZ" in response["error"]
        assert ready_engine.handle(_filter([]))["type"] == MSG_RESULT

    def test_malformed_clue(self, ready_engine):
        assert ready_engine.handle(_filter([{"country": "AAA"}]))["type"] == MSG_ERROR
        assert ready_engine.handle(_filter("AAA"))["type"] == MSG_ERROR
        assert (
            ready_engine.handle(_filter([{"country": "AAA", "distance": -5}]))["type"]
            == MSG_ERROR
        )
        for distance in (float("inf"), float("nan"), "Infinity"):
            clue = [{"country": "AAA", "distance": distance}]
            assert ready_engine.handle(_filter(clue))["type"] == MSG_ERROR

    def test_parse_clues_unknown_region(self, ready_engine):
        with pytest.raises(UnknownRegionError):
            ready_engine.parse_clues([{"country": "XYZ", "distance": 1}])

    def test_unknown_message_type(self, engine):
        assert engine.handle({"type": "PING"})["type"] == MSG_ERROR
        assert engine.handle("INIT")["type"] == MSG_ERROR

    def test_matrix_consulted_only_with_territories(self, engine, world_path, tmp_path):
        """A matrix entry overrides geometry in territory mode only."""
        path = save_distance_matrix({"CCC": {"DDD": 3000.0}}, tmp_path / "d.json")
        engine.handle(_init(world_path, path))
        clue = [{"country": "CCC", "distance": 3000}]
        assert _ids(engine.handle(_filter(clue, True))) == ["DDD"]
        assert _ids(engine.handle(_filter(clue, False))) == []


class _SlowEngine:
    """Engine stub recording handling order."""

    def __init__(self):
        self.seen = []
        self.active = 0
        self.max_active = 0
        self.lock = threading.Lock()

    def handle(self, message):
        with self.lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(0.01)
        self.seen.append(message["n"])
        with self.lock:
            self.active -= 1
        if message["n"] == 3:
            raise RuntimeError("boom")
        return {"type": MSG_RESULT, "n": message["n"]}


class TestEngineWorker:
    """Serialized worker behavior."""

    def test_requests_processed_in_order_one_at_a_time(self):
        engine = _SlowEngine()
        with EngineWorker(engine) as worker:
            futures = [worker.submit({"n": n}) for n in range(6)]
            responses = [f.result() for f in futures]

        assert engine.seen == list(range(6))
        assert engine.max_active == 1
        assert responses[0] == {"type": MSG_RESULT, "n": 0}

    def test_unexpected_exception_becomes_error(self):
        with EngineWorker(_SlowEngine()) as worker:
            response = worker.request({"n": 3})
            assert response["type"] == MSG_ERROR
            assert worker.request({"n": 4})["n"] == 4

    def test_submit_requires_running_worker(self):
        with pytest.raises(RuntimeError):
            EngineWorker(_SlowEngine()).submit({"n": 0})

    def test_real_engine_round_trip(self, world_path, sequential_config):
        with EngineWorker(GeoClueEngine(sequential_config)) as worker:
            assert worker.request(_init(world_path))["type"] == MSG_READY
            response = worker.request(_filter([{"country": "BBB", "distance": 0}]))
            assert _ids(response) == ["AAA", "BBB"]
        assert not worker.is_running
