"""Background clock driving the simulation engine."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from ...config import settings
from .engine import SimulationEngine

logger = logging.getLogger(__name__)


class SimulationClock:
    """Calls ``engine.tick_all`` every ``interval_ms`` with the measured elapsed time."""

    def __init__(self, engine: SimulationEngine, interval_ms: int | None = None) -> None:
        self.engine = engine
        self.interval_ms = interval_ms if interval_ms is not None else settings.simulation_tick_ms
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="simulation-clock", daemon=True)
        self._thread.start()
        logger.info(f"Simulation clock started ({self.interval_ms} ms ticks)")

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info("Simulation clock stopped")

    def _run(self) -> None:
        interval = self.interval_ms / 1000.0
        last = time.monotonic()
        while not self._stop.wait(interval):
            now = time.monotonic()
            elapsed_ms = (now - last) * 1000.0
            last = now
            try:
                self.engine.tick_all(elapsed_ms)
            except Exception:
                logger.exception("Simulation tick failed")
