"""
Tests for the Flask host.

Run with: python -m pytest geoclue/_tests/test_server.py -v
"""

import threading
import time

import pytest

import geoclue.server as server
from geoclue.engine import EngineWorker, GeoClueEngine


@pytest.fixture
def client(monkeypatch, sequential_config):
    worker = EngineWorker(GeoClueEngine(sequential_config))
    monkeypatch.setattr(server, "engine_worker", worker)
    server.app.config["TESTING"] = True
    with server.app.test_client() as test_client:
        yield test_client
    worker.stop()


class TestRoutes:
    """HTTP forwarding to the engine worker."""

    def test_health_before_init(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json() == {"running": False, "ready": False}

    def test_filter_before_init_is_400(self, client):
        response = client.post("/api/filter", json={"clues": []})
        assert response.status_code == 400
        assert response.get_json() == {"type": "ERROR", "error": "Data not loaded"}

    def test_init_then_filter(self, client, world_path):
        init = client.post("/api/init", json={"worldUrl": str(world_path)})
        assert init.status_code == 200
        assert init.get_json()["type"] == "READY"

        result = client.post(
            "/api/filter",
            json={"clues": [{"country": "AAA", "distance": 0}], "includeTerritories": False},
        )
        assert result.status_code == 200
        body = result.get_json()
        assert body["type"] == "RESULT"
        assert [f["id"] for f in body["candidates"]] == ["AAA", "BBB"]

        health = client.get("/api/health").get_json()
        assert health == {"running": True, "ready": True}

    def test_init_failure_is_400(self, client, tmp_path):
        response = client.post("/api/init", json={"worldUrl": str(tmp_path / "none.geojson")})
        assert response.status_code == 400
        assert response.get_json()["type"] == "ERROR"

    def test_non_object_body_is_400(self, client):
        response = client.post("/api/filter", json=[1, 2])
        assert response.status_code == 400


class TestGetWorker:
    """Lazy creation of the shared engine worker."""

    def test_concurrent_first_calls_share_one_worker(self, monkeypatch):
        created = []

        class SlowWorker(EngineWorker):
            def __init__(self, engine=None):
                created.append(self)
                time.sleep(0.05)
                super().__init__(engine)

        monkeypatch.setattr(server, "engine_worker", None)
        monkeypatch.setattr(server, "EngineWorker", SlowWorker)

        n_threads = 4
        barrier = threading.Barrier(n_threads)
        results = []

        def call():
            barrier.wait()
            results.append(server.get_worker())

        threads = [threading.Thread(target=call) for _ in range(n_threads)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        try:
            assert len(created) == 1
            assert len(results) == n_threads
            assert all(worker is created[0] for worker in results)
            assert created[0].is_running
        finally:
            created[0].stop()
