"""
Serialized Engine Worker

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Run the engine off the caller's thread on a single
dedicated consumer, one request at a time, in arrival order.

Concurrency Model:
- One daemon thread consumes a FIFO queue.Queue of (message, Future)
- INIT and FILTER are strictly serialized; no two filters ever overlap,
  so the distance memo is only written from this thread
- No cancellation and no timeouts: a new request waits behind the
  current one

Usage:
    worker = EngineWorker(GeoClueEngine())
    worker.start()
    ready = worker.submit({"type": "INIT", "payload": {...}}).result()
    worker.stop()

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Dict, Optional, Tuple

from geoclue.engine.service import GeoClueEngine, error_response

logger = logging.getLogger("GeoClue.Engine.Worker")

_STOP = object()


class EngineWorker:
    """Single-consumer request queue in front of a GeoClueEngine."""

    def __init__(self, engine: Optional[GeoClueEngine] = None) -> None:
        self.engine = engine or GeoClueEngine()
        self._queue: "queue.Queue[Tuple[Any, Optional[Future]]]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "EngineWorker":
        """Start the consumer thread (idempotent, safe from several threads)."""
        with self._start_lock:
            if self.is_running:
                return self
            self._thread = threading.Thread(
                target=self._run, name="geoclue-engine", daemon=True
            )
            self._thread.start()
        logger.info("🧵 Engine worker started")
        return self

    def stop(self) -> None:
        """Finish queued requests, then stop the consumer thread."""
        with self._start_lock:
            if not self.is_running:
                return
            self._queue.put((_STOP, None))
            self._thread.join()
            self._thread = None
        logger.info("🧵 Engine worker stopped")

    def submit(self, message: Dict[str, Any]) -> "Future[Dict[str, Any]]":
        """
        Queue a request message.

        Returns:
            Future resolving to the response message
        """
        if not self.is_running:
            raise RuntimeError("Engine worker is not running")
        future: "Future[Dict[str, Any]]" = Future()
        self._queue.put((message, future))
        return future

    def request(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Submit a request and block until its response is available."""
        return self.submit(message).result()

    def _run(self) -> None:
        while True:
            message, future = self._queue.get()
            try:
                if message is _STOP:
                    return
                if not future.set_running_or_notify_cancel():
                    continue
                try:
                    response = self.engine.handle(message)
                except Exception as e:
                    # Unexpected engine failure: report it, keep serving
                    logger.exception(f"❌ Request failed unexpectedly: {e}")
                    response = error_response(f"Internal error: {e}")
                future.set_result(response)
            finally:
                self._queue.task_done()

    def __enter__(self) -> "EngineWorker":
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()
