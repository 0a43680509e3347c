#!/usr/bin/env python3
"""
GeoClue - Flask Server

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Lightweight HTTP host for the distance-clue engine. Each
request is forwarded as an INIT / FILTER message to the single EngineWorker
and the response message is returned as JSON.

Navigation Guide:
- ROUTES: /api/init, /api/filter, /api/health
- STARTUP: Worker start and app.run

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import threading
from typing import Optional, Tuple

from flask import Flask, jsonify, request, Response
from flask_cors import CORS

from geoclue.config_types import AppConfig
from geoclue.engine import GeoClueEngine, EngineWorker, MSG_ERROR, MSG_FILTER, MSG_INIT

# ═══════════════════════════════════════════════════════════════════════════
# 🌐 FLASK APPLICATION
# ═══════════════════════════════════════════════════════════════════════════

app = Flask(__name__)
CORS(app)

# Global worker - created once, started on first use
engine_worker: Optional[EngineWorker] = None
_worker_lock = threading.Lock()

logger = logging.getLogger("GeoClue.Server")


def get_worker() -> EngineWorker:
    """Return the running engine worker, creating it on first call."""
    global engine_worker
    if engine_worker is None:
        with _worker_lock:
            if engine_worker is None:
                engine_worker = EngineWorker(GeoClueEngine(AppConfig.default()))
    return engine_worker.start()


def _forward(msg_type: str) -> Tuple[Response, int]:
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return jsonify({"type": MSG_ERROR, "error": "Request body must be an object"}), 400

    response = get_worker().request({"type": msg_type, "payload": payload})
    status = 400 if response.get("type") == MSG_ERROR else 200
    return jsonify(response), status


# ═══════════════════════════════════════════════════════════════════════════
# 🛣️ ROUTES
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/api/init", methods=["POST"])
def init_engine() -> Tuple[Response, int]:
    """
    Load region geometry and the optional distance matrix.

    Request Body:
        {"worldUrl": "...", "distancesUrl": "..."}

    Returns:
        {"type": "READY", "countries": FeatureCollection} or ERROR (400)
    """
    return _forward(MSG_INIT)


@app.route("/api/filter", methods=["POST"])
def filter_regions() -> Tuple[Response, int]:
    """
    Filter the universe by distance clues.

    Request Body:
        {
            "clues": [{"country": "FRA", "distance": 1200}, ...],
            "includeTerritories": false
        }

    Returns:
        {"type": "RESULT", "candidates": [Feature, ...]} or ERROR (400)
    """
    return _forward(MSG_FILTER)


@app.route("/api/health")
def health() -> Response:
    """Worker liveness and engine readiness."""
    worker = engine_worker
    return jsonify(
        {
            "running": worker is not None and worker.is_running,
            "ready": worker is not None and worker.engine.is_ready,
        }
    )


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 STARTUP
# ═══════════════════════════════════════════════════════════════════════════


def main() -> None:
    """Main entry point - start the worker and the server."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
    app_config = AppConfig.default()
    host, port = app_config.server.host, app_config.server.port

    get_worker()
    logger.info(f"🌐 Starting server at http://{host}:{port}")
    app.run(host=host, port=port, debug=False)


if __name__ == "__main__":
    main()
